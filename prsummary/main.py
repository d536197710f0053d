"""Main CLI application for prsummary."""

import typer
from pathlib import Path
from typing import Optional, List

from .config import (
    CONFIG_FILE_NAME, KEYS_FILE_NAME, ConfigError, Config, apply_overrides, load_config,
    create_default_config, create_default_keys_file,
)
from .utils.logging import console, success, error, info, print_config_info, set_verbose
# Command modules are imported locally in each command function

app = typer.Typer(
    name="prsummary",
    help="Summarize a user's merged pull requests for a performance review",
    no_args_is_help=True,
)

ConfigOption = typer.Option(None, "--config", "-c", help=f"Path to configuration file (default: nearest {CONFIG_FILE_NAME})")
UsernameOption = typer.Option(None, "--username", "-u", help="GitHub username whose PRs to collect")
ReposOption = typer.Option(None, "--repo", "-r", help="Repository in owner/name format (repeatable)")
SinceOption = typer.Option(None, "--since", help="Start date (YYYY-MM-DD)")
UntilOption = typer.Option(None, "--until", help="End date (YYYY-MM-DD)")
DaysOption = typer.Option(None, "--days", help="Number of days to look back (default 30)")
OutputDirOption = typer.Option(None, "--output-dir", "-o", help="Directory for prs.md and summary.md")
ExtraPromptOption = typer.Option(None, "--extra-prompt", help="Additional instructions for the summarizer")
ForceOption = typer.Option(False, "--force", "-f", help="Overwrite existing output files without asking")


def resolve_config(
    config_file: Optional[Path],
    username: Optional[str],
    repos: Optional[List[str]],
    since: Optional[str],
    until: Optional[str],
    days: Optional[int],
    output_dir: Optional[str],
    extra_prompt: Optional[str],
    output_only: bool = False,
) -> Config:
    """Load the config file, apply command line overrides and validate.

    With ``output_only`` the username, repositories and date range are not
    required, since nothing is fetched.
    """
    try:
        config = load_config(config_file)
        apply_overrides(config, username, repos, since, until, days, output_dir, extra_prompt)
        if output_only:
            return config.validate_output()
        return config.validate()
    except ConfigError as e:
        error(f"Failed to load configuration: {e}")
        raise typer.Exit(1)


@app.command(help="Fetch merged PRs and generate a review summary")
def run(
    config_file: Optional[Path] = ConfigOption,
    username: Optional[str] = UsernameOption,
    repos: Optional[List[str]] = ReposOption,
    since: Optional[str] = SinceOption,
    until: Optional[str] = UntilOption,
    days: Optional[int] = DaysOption,
    output_dir: Optional[str] = OutputDirOption,
    extra_prompt: Optional[str] = ExtraPromptOption,
    force: bool = ForceOption,
) -> None:
    """Run the complete end-to-end workflow."""
    from .commands.run import run_main

    config = resolve_config(config_file, username, repos, since, until, days, output_dir, extra_prompt)
    run_main(config, force)


@app.command(help="Fetch merged PRs and write prs.md")
def fetch(
    config_file: Optional[Path] = ConfigOption,
    username: Optional[str] = UsernameOption,
    repos: Optional[List[str]] = ReposOption,
    since: Optional[str] = SinceOption,
    until: Optional[str] = UntilOption,
    days: Optional[int] = DaysOption,
    output_dir: Optional[str] = OutputDirOption,
    force: bool = ForceOption,
) -> None:
    """Fetch merged PRs and write prs.md."""
    from .commands.fetch import fetch_main

    config = resolve_config(config_file, username, repos, since, until, days, output_dir, None)
    fetch_main(config, force)


@app.command(help="Summarize an existing prs.md into summary.md")
def summarize(
    config_file: Optional[Path] = ConfigOption,
    output_dir: Optional[str] = OutputDirOption,
    extra_prompt: Optional[str] = ExtraPromptOption,
    force: bool = ForceOption,
) -> None:
    """Summarize an existing prs.md."""
    from .commands.summarize import summarize_main

    config = resolve_config(config_file, None, None, None, None, None, output_dir, extra_prompt, output_only=True)
    summarize_main(config, force)


@app.command()
def init(
    force: bool = typer.Option(False, "--force", help="Overwrite existing configuration files")
) -> None:
    """Initialize a new prsummary project with default configuration."""
    config_path = Path(CONFIG_FILE_NAME)
    keys_path = Path(KEYS_FILE_NAME)

    try:
        if config_path.exists() and not force:
            error(f"Configuration file {config_path} already exists. Use --force to overwrite.")
            raise typer.Exit(1)

        if force and config_path.exists():
            config_path.unlink()

        create_default_config()
        success(f"Created configuration file: {config_path}")

        if keys_path.exists() and not force:
            info(f"Keys file {keys_path} already exists, skipping.")
        else:
            if force and keys_path.exists():
                keys_path.unlink()

            create_default_keys_file()
            success(f"Created keys file: {keys_path}")
            info(f"Edit {KEYS_FILE_NAME} to add your GitHub token, or log in with 'gh auth login'")

        gitignore_path = Path(".gitignore")
        gitignore_content = gitignore_path.read_text() if gitignore_path.exists() else ""

        if KEYS_FILE_NAME not in gitignore_content:
            with open(gitignore_path, "a") as f:
                if gitignore_content and not gitignore_content.endswith("\n"):
                    f.write("\n")
                f.write(f"\n# prsummary keys and secrets\n{KEYS_FILE_NAME}\n")
            success("Updated .gitignore to exclude keys file")

        console.print("\n🎉 prsummary project initialized!")
        console.print("\nNext steps:")
        console.print(f"1. Edit {CONFIG_FILE_NAME} to set your username and repositories")
        console.print("2. Run 'prsummary run' to fetch PRs and generate a summary")

    except FileExistsError as e:
        error(str(e))
        raise typer.Exit(1)


@app.command()
def config(
    config_file: Optional[Path] = ConfigOption,
    show_keys: bool = typer.Option(False, "--show-keys", help="Show sensitive configuration (GitHub token)"),
) -> None:
    """Show current configuration."""
    try:
        loaded = load_config(config_file)
        loaded.validate()
    except ConfigError as e:
        error(f"Failed to load configuration: {e}")
        raise typer.Exit(1)

    print_config_info(loaded)

    if show_keys and loaded.github.token:
        console.print(f"\n🔑 GitHub token: {loaded.github.token[:8]}...")

    if loaded.description_policies:
        console.print("\n📝 Description policies:")
        for repo, policy in loaded.description_policies.items():
            console.print(f"  • {repo}: {policy}")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output")
) -> None:
    """prsummary: Turn merged pull requests into a performance review summary."""
    set_verbose(verbose)


if __name__ == "__main__":
    app()
