"""End-to-end command: fetch PRs, render prs.md and summarize it."""

import typer

from ..config import Config
from ..utils.logging import success, error, warning, info, print_repo_list, confirm_operation
from ..utils.paths import ensure_output_dirs, get_prs_file_path, get_summary_file_path
from .fetch import fetch_prs_file
from .summarize import generate_summary


def should_write(path, force: bool) -> bool:
    """Check whether ``path`` may be (over)written, asking the user if it exists."""
    if force or not path.exists():
        return True
    return confirm_operation(f"File {path} already exists. Do you want to overwrite it?")


def run_main(config: Config, force: bool = False) -> None:
    """Run the complete fetch and summarize workflow."""
    try:
        print_repo_list(config.repos)
        ensure_output_dirs(config.output_dir)

        prs_file = get_prs_file_path(config.output_dir)
        summary_file = get_summary_file_path(config.output_dir)

        # Ask about the summary before doing any expensive work
        if not should_write(summary_file, force):
            info(f"Summary file {summary_file} already exists and was kept. Nothing to do.")
            return

        if should_write(prs_file, force):
            written = fetch_prs_file(config)
            if written is None:
                return
        else:
            info(f"Using existing PR descriptions from {prs_file}")

        if not generate_summary(config, prs_file, summary_file):
            raise typer.Exit(1)

        success("Review summary complete")

    except KeyboardInterrupt:
        warning("Run interrupted by user")
        raise typer.Exit(1)
    except typer.Exit:
        raise
    except RuntimeError as e:
        error(str(e))
        raise typer.Exit(1)
