"""Summarize command for generating a review summary with the summarizer CLI."""

import typer
from pathlib import Path

from ..config import Config
from ..utils.copilot import build_prompt, run_summarizer, write_summary
from ..utils.logging import success, error, warning, info, step, debug, confirm_operation
from ..utils.paths import ensure_output_dirs, get_prs_file_path, get_session_log_file_path, get_summary_file_path


def generate_summary(config: Config, prs_file: Path, summary_file: Path) -> bool:
    """Summarize ``prs_file`` and write the result to ``summary_file``."""
    command = config.summarizer.command
    step(f"Generating summary with {command}...")
    debug(f"Summarizer prompt: {build_prompt(prs_file.name, config.extra_prompt)}")

    result = run_summarizer(
        prs_file,
        command,
        config.summarizer.args,
        extra_prompt=config.extra_prompt,
        log_file=get_session_log_file_path(config.output_dir),
        timeout=config.summarizer.timeout,
    )

    if not result["success"]:
        error(f"Error generating summary: {result['error']}")
        if result.get("log_file"):
            warning(f"  → Check log: {result['log_file']}")
        return False

    info(f"Writing summary to {summary_file}")
    write_summary(result["summary"], summary_file)
    success(f"Summary written to {summary_file}")
    return True


def summarize_main(config: Config, force: bool = False) -> None:
    """Summarize an existing prs.md into summary.md."""
    try:
        ensure_output_dirs(config.output_dir)
        prs_file = get_prs_file_path(config.output_dir)
        summary_file = get_summary_file_path(config.output_dir)

        if not prs_file.exists():
            error(f"{prs_file} not found. Run 'prsummary fetch' first.")
            raise typer.Exit(1)

        if summary_file.exists() and not force:
            if not confirm_operation(f"File {summary_file} already exists. Do you want to overwrite it?"):
                info(f"Summary file {summary_file} already exists and was kept. Nothing to do.")
                return

        if not generate_summary(config, prs_file, summary_file):
            raise typer.Exit(1)

    except KeyboardInterrupt:
        warning("Summary generation interrupted by user")
        raise typer.Exit(1)
