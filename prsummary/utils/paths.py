"""Path utilities for prsummary output files."""

from datetime import datetime
from pathlib import Path
from typing import Tuple, Union

PRS_FILE_NAME = "prs.md"
SUMMARY_FILE_NAME = "summary.md"


def get_prs_file_path(output_dir: Union[str, Path]) -> Path:
    """Get the path of the rendered PR descriptions file."""
    return Path(output_dir) / PRS_FILE_NAME


def get_summary_file_path(output_dir: Union[str, Path]) -> Path:
    """Get the path of the generated summary file."""
    return Path(output_dir) / SUMMARY_FILE_NAME


def get_logs_dir(output_dir: Union[str, Path]) -> Path:
    """Get the directory holding summarizer session logs."""
    return Path(output_dir) / "logs"


def get_session_log_file_path(output_dir: Union[str, Path]) -> Path:
    """Get a unique session log file path for this run."""
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return get_logs_dir(output_dir) / f"summary-{timestamp}.json"


def ensure_output_dirs(output_dir: Union[str, Path]) -> None:
    """Ensure the output and log directories exist."""
    Path(output_dir).mkdir(parents=True, exist_ok=True)
    get_logs_dir(output_dir).mkdir(parents=True, exist_ok=True)


def parse_repo(repo: str) -> Tuple[str, str]:
    """Parse a repository string into owner and name."""
    if "/" not in repo:
        raise ValueError(f"Repository must be in format 'owner/name', got: {repo}")

    parts = repo.strip().split("/")
    if len(parts) != 2:
        raise ValueError(f"Repository must be in format 'owner/name', got: {repo}")

    owner, name = (part.strip() for part in parts)
    if not owner or not name:
        raise ValueError(f"Repository owner and name cannot be empty, got: {repo}")

    return owner, name
