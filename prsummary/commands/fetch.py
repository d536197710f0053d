"""Fetch command: collect merged PRs and render them to prs.md."""

import typer
from pathlib import Path
from typing import List, Optional

from rich.progress import BarColumn, MofNCompleteColumn, Progress, SpinnerColumn, TextColumn, TimeRemainingColumn

from ..config import Config, get_github_token
from ..utils.descriptions import build_policy_table
from ..utils.github import PullRequestInfo, count_merged_prs, fetch_merged_prs
from ..utils.logging import (
    console, success, error, warning, info, step, operation_summary, print_repo_list, confirm_operation
)
from ..utils.markdown import write_prs_markdown
from ..utils.paths import ensure_output_dirs, get_prs_file_path


def count_all_prs(config: Config, token: Optional[str]) -> int:
    """Count merged PRs across all configured repositories."""
    step(f"Counting PRs across {len(config.repos)} repositories...")
    total = 0
    for repo in config.repos:
        count = count_merged_prs(repo, config.username, config.since_time, config.until_time, token)
        if count is None:
            warning(f"Error counting PRs from {repo}, skipping count")
            continue
        info(f"{repo}: {count} merged PRs")
        total += count
    return total


def fetch_all_prs(config: Config, token: Optional[str], total: int) -> List[PullRequestInfo]:
    """Fetch merged PRs from every repository, showing a progress bar."""
    all_prs: List[PullRequestInfo] = []
    fetched_repos = 0

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeRemainingColumn(),
        console=console,
    ) as progress:
        task = progress.add_task("[cyan]Processing PRs...", total=total)

        for repo in config.repos:
            def advance(pr: PullRequestInfo) -> None:
                progress.update(task, advance=1, description=f"[cyan]Processing PR #{pr.number} from {pr.repository}")

            prs = fetch_merged_prs(
                repo, config.username, config.since_time, config.until_time, token, on_progress=advance
            )
            if prs is None:
                error(f"Error fetching PRs from {repo}")
                continue

            fetched_repos += 1
            all_prs.extend(prs)

    operation_summary("Fetch", len(config.repos), fetched_repos)
    return all_prs


def fetch_prs_file(config: Config) -> Optional[Path]:
    """Fetch PRs and write prs.md, returning its path or None if there was nothing to write."""
    token = get_github_token(config)

    total = count_all_prs(config, token)
    if total == 0:
        info("No merged PRs found in the specified time range.")
        return None

    info(f"Found {total} PRs to process.")
    prs = fetch_all_prs(config, token, total)
    success(f"Completed processing {len(prs)} merged PRs")

    prs_file = get_prs_file_path(config.output_dir)
    step(f"Writing PR descriptions to {prs_file}")
    write_prs_markdown(prs, prs_file, build_policy_table(config.description_policies))
    return prs_file


def fetch_main(config: Config, force: bool = False) -> None:
    """Fetch merged PRs and write them to prs.md."""
    try:
        print_repo_list(config.repos)
        ensure_output_dirs(config.output_dir)

        prs_file = get_prs_file_path(config.output_dir)
        if prs_file.exists() and not force:
            if not confirm_operation(f"File {prs_file} already exists. Do you want to overwrite it?"):
                info(f"Keeping existing {prs_file}")
                return

        written = fetch_prs_file(config)
        if written:
            success(f"PR descriptions written to {written}")

    except KeyboardInterrupt:
        warning("Fetch interrupted by user")
        raise typer.Exit(1)
    except typer.Exit:
        raise
    except RuntimeError as e:
        error(str(e))
        raise typer.Exit(1)
