"""Rich console logging utilities."""

from rich.console import Console
from rich.panel import Panel
from rich.text import Text
from typing import List

# Global console instance
console = Console()

_verbose = False


def set_verbose(enabled: bool) -> None:
    """Turn debug output on or off."""
    global _verbose
    _verbose = enabled


def is_verbose() -> bool:
    return _verbose


def success(message: str) -> None:
    """Print a success message."""
    console.print(f"✅ {message}")


def error(message: str) -> None:
    """Print an error message."""
    console.print(f"❌ {message}", style="red")


def warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"⚠️  {message}", style="yellow")


def info(message: str) -> None:
    """Print an info message."""
    console.print(f"ℹ️  {message}", style="blue")


def step(message: str) -> None:
    """Print a step message."""
    console.print(f"📥 {message}", style="cyan")


def debug(message: str) -> None:
    """Print a debug message when verbose output is enabled."""
    if _verbose:
        console.print(f"🔍 {message}", style="dim", markup=False)


def operation_summary(operation: str, total: int, success: int) -> None:
    """Print an operation summary."""
    if success == total:
        emoji = "🎉"
        style = "green"
    elif success > 0:
        emoji = "📊"
        style = "yellow"
    else:
        emoji = "💥"
        style = "red"

    message = f"{emoji} {operation} Summary: {success}/{total} repositories fetched"
    console.print(Panel(message, style=style))


def print_config_info(config) -> None:
    """Print configuration information."""
    info_text = Text()
    info_text.append("Configuration loaded:\n", style="bold")
    info_text.append(f"  Username: {config.username or '(not set)'}\n")
    info_text.append(f"  Repositories: {len(config.repos)} configured\n")
    if config.since_time and config.until_time:
        info_text.append(
            f"  Date range: {config.since_time.strftime('%Y-%m-%d')} to {config.until_time.strftime('%Y-%m-%d')}\n"
        )
    info_text.append(f"  Output directory: {config.output_dir}\n")
    info_text.append(f"  GitHub token: {'✅ Found' if config.github.token else '➖ Falls back to gh CLI'}\n")
    info_text.append(f"  Summarizer command: {config.summarizer.command}")

    console.print(Panel(info_text, title="prsummary Configuration"))


def print_repo_list(repos: List[str]) -> None:
    """Print a formatted list of repositories."""
    if not repos:
        warning("No repositories configured")
        return

    console.print(f"\n📋 Repositories ({len(repos)}):")
    for repo in repos:
        console.print(f"  • {repo}")
    console.print()


def confirm_operation(message: str) -> bool:
    """Ask for confirmation before proceeding."""
    response = console.input(f"{message} (y/N): ")
    return response.strip().lower() in ("y", "yes")
