"""Common utilities for running the summarizer CLI."""

import json
import subprocess
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

DEFAULT_PROMPT = """An employee is undergoing a performance review. They have contributed to the company by merging several pull requests.
Describe their major contributions based on the PR descriptions in @{prs_file}. Be sure to emphasize the impact of their work and any significant features or improvements they introduced.
Include links to PRs. Don't write any files."""


def build_prompt(prs_file_name: str, extra_prompt: Optional[str] = None) -> str:
    """Build the summarizer prompt, appending any extra instructions."""
    prompt = DEFAULT_PROMPT.format(prs_file=prs_file_name)
    if extra_prompt and extra_prompt.strip():
        prompt = f"{prompt}\n\nAdditional instructions:\n{extra_prompt.strip()}"
    return prompt


def write_session_log(log_file: Optional[Path], session_log: Dict[str, Any]) -> None:
    if log_file is None:
        return
    log_file.parent.mkdir(parents=True, exist_ok=True)
    log_file.write_text(json.dumps(session_log, indent=2))


def run_summarizer(
    prs_file: Path,
    command: str,
    args: List[str],
    extra_prompt: Optional[str] = None,
    log_file: Optional[Path] = None,
    timeout: int = 600,
) -> Dict[str, Any]:
    """Run the summarizer CLI over the directory holding ``prs_file``.

    Args:
        prs_file: Path to the rendered PR descriptions
        command: Summarizer command to run (e.g. 'copilot')
        args: Extra arguments placed before the directory and prompt flags
        extra_prompt: Additional instructions appended to the default prompt
        log_file: Optional path to save a JSON session log
        timeout: Seconds to wait for the summarizer

    Returns:
        Dictionary with success status and either the summary or an error
    """
    prs_dir = prs_file.parent.resolve()
    prompt = build_prompt(prs_file.name, extra_prompt)
    cmd = [command] + list(args) + ["--add-dir", str(prs_dir), "-p", prompt]

    session_log: Dict[str, Any] = {
        "timestamp": datetime.now().isoformat(),
        "command": command,
        "args": list(args),
        "prs_file": str(prs_file),
        "prompt": prompt,
    }

    try:
        result = subprocess.run(
            cmd,
            cwd=prs_dir,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except FileNotFoundError:
        session_log["error"] = f"{command} not found"
        write_session_log(log_file, session_log)
        return {
            "success": False,
            "error": f"failed to run {command}: command not found (make sure {command} CLI is installed and available)",
            "log_file": log_file,
        }
    except subprocess.TimeoutExpired:
        session_log["error"] = f"Process timed out after {timeout} seconds"
        write_session_log(log_file, session_log)
        return {
            "success": False,
            "error": f"{command} timed out after {timeout} seconds",
            "timeout": True,
            "log_file": log_file,
        }

    session_log.update({
        "return_code": result.returncode,
        "stdout": result.stdout,
        "stderr": result.stderr,
    })
    write_session_log(log_file, session_log)

    if result.returncode != 0:
        return {
            "success": False,
            "error": f"failed to run {command} (exit code {result.returncode})\nStderr: {result.stderr.strip()}",
            "log_file": log_file,
        }

    summary = result.stdout.strip()
    if not summary:
        return {
            "success": False,
            "error": f"{command} returned empty summary",
            "log_file": log_file,
        }

    return {
        "success": True,
        "summary": summary,
        "log_file": log_file,
    }


def write_summary(summary: str, summary_file: Path) -> None:
    """Write the summary markdown file."""
    summary_file.parent.mkdir(parents=True, exist_ok=True)
    summary_file.write_text(f"# PR Summary\n\n{summary}\n", encoding="utf-8")
