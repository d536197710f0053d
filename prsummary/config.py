"""Configuration management for prsummary."""

import os
import subprocess
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional
import tomli
import tomli_w
from dataclasses import dataclass, field

from .utils.dates import DEFAULT_DAYS, resolve_date_range
from .utils.descriptions import POLICIES
from .utils.paths import parse_repo

CONFIG_FILE_NAME = ".prsummary.toml"
KEYS_FILE_NAME = ".prsummary-keys.toml"

KNOWN_KEYS = {
    "username", "since", "until", "days", "output_dir", "extra_prompt", "repos",
    "summarizer", "descriptions",
}


class ConfigError(ValueError):
    """Raised when the configuration is missing or invalid."""


@dataclass
class GitHubConfig:
    """GitHub API configuration."""
    token: Optional[str] = None


@dataclass
class SummarizerConfig:
    """External summarizer CLI configuration."""
    command: str = "copilot"
    args: List[str] = field(default_factory=lambda: [
        "--disable-builtin-mcps", "--deny-tool", "--no-color", "--no-custom-instructions",
    ])
    timeout: int = 600


@dataclass
class Config:
    """Main configuration class."""
    username: str = ""
    since: Optional[str] = None
    until: Optional[str] = None
    days: Optional[int] = None
    output_dir: str = ""
    extra_prompt: str = ""
    repos: List[str] = field(default_factory=list)
    description_policies: Dict[str, str] = field(default_factory=dict)
    github: GitHubConfig = field(default_factory=GitHubConfig)
    summarizer: SummarizerConfig = field(default_factory=SummarizerConfig)

    # Filled in by validate()
    since_time: Optional[datetime] = None
    until_time: Optional[datetime] = None

    def validate(self, now: Optional[datetime] = None) -> "Config":
        """Check required fields and resolve the date range."""
        if not self.username:
            raise ConfigError("username is required")
        if not self.output_dir:
            raise ConfigError("output_dir is required")
        if not self.repos:
            raise ConfigError("repos list cannot be empty")

        repos = []
        for repo in self.repos:
            try:
                owner, name = parse_repo(repo)
            except ValueError as e:
                raise ConfigError(f"invalid repository format '{repo}': {e}")
            repos.append(f"{owner}/{name}")
        self.repos = repos

        for repo, policy_name in self.description_policies.items():
            if policy_name not in POLICIES:
                known = ", ".join(sorted(POLICIES))
                raise ConfigError(f"unknown description policy '{policy_name}' for {repo} (expected one of: {known})")

        try:
            self.since_time, self.until_time = resolve_date_range(self.since, self.until, self.days, now=now)
        except ValueError as e:
            raise ConfigError(str(e))

        return self

    def validate_output(self) -> "Config":
        """Check only what is needed to work on files already in output_dir."""
        if not self.output_dir:
            raise ConfigError("output_dir is required")
        return self


def find_config_file() -> Optional[Path]:
    """Find the config file, checking current directory and parents."""
    current = Path.cwd()

    for parent in [current] + list(current.parents):
        config_path = parent / CONFIG_FILE_NAME
        if config_path.exists():
            return config_path

    return None


def find_keys_file(start: Optional[Path] = None) -> Optional[Path]:
    """Find the keys file, checking the given directory (or cwd) and parents."""
    current = start or Path.cwd()

    for parent in [current] + list(current.parents):
        keys_path = parent / KEYS_FILE_NAME
        if keys_path.exists():
            return keys_path

    return None


def apply_config_data(config: Config, data: Dict) -> Config:
    """Copy values from a parsed TOML document onto a Config."""
    unknown = sorted(set(data) - KNOWN_KEYS)
    if unknown:
        raise ConfigError(f"unknown configuration field(s): {', '.join(unknown)}")

    for key in ("username", "since", "until", "output_dir", "extra_prompt"):
        if key in data and not isinstance(data[key], str):
            raise ConfigError(f"{key} must be a string")
    # bool is an int subclass
    if "days" in data and (not isinstance(data["days"], int) or isinstance(data["days"], bool)):
        raise ConfigError("days must be an integer")

    config.username = data.get("username", config.username)
    config.since = data.get("since", config.since)
    config.until = data.get("until", config.until)
    config.days = data.get("days", config.days)
    config.output_dir = data.get("output_dir", config.output_dir)
    config.extra_prompt = data.get("extra_prompt", config.extra_prompt)

    repos = data.get("repos", config.repos)
    if not isinstance(repos, list) or not all(isinstance(repo, str) for repo in repos):
        raise ConfigError("repos must be a list of 'owner/name' strings")
    config.repos = list(repos)

    if "summarizer" in data:
        summarizer = data["summarizer"]
        if not isinstance(summarizer, dict):
            raise ConfigError("[summarizer] must be a table")
        command = summarizer.get("command", config.summarizer.command)
        args = summarizer.get("args", config.summarizer.args)
        timeout = summarizer.get("timeout", config.summarizer.timeout)
        if not isinstance(command, str) or not command:
            raise ConfigError("summarizer.command must be a non-empty string")
        if not isinstance(args, list) or not all(isinstance(arg, str) for arg in args):
            raise ConfigError("summarizer.args must be a list of strings")
        if not isinstance(timeout, int) or isinstance(timeout, bool) or timeout <= 0:
            raise ConfigError("summarizer.timeout must be a positive integer")
        config.summarizer.command = command
        config.summarizer.args = list(args)
        config.summarizer.timeout = timeout

    if "descriptions" in data:
        descriptions = data["descriptions"]
        if not isinstance(descriptions, dict) or not all(isinstance(name, str) for name in descriptions.values()):
            raise ConfigError("[descriptions] must be a table of \"owner/name\" = \"policy-name\" entries")
        config.description_policies.update(descriptions)

    return config


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load configuration from .prsummary.toml and .prsummary-keys.toml files.

    The result is not validated; call ``Config.validate()`` once command
    line overrides have been applied.
    """
    config = Config()

    if config_path is None:
        config_path = find_config_file()
    elif not config_path.exists():
        raise ConfigError(f"Config file {config_path} not found")

    if config_path:
        try:
            with open(config_path, "rb") as f:
                data = tomli.load(f)
        except (OSError, tomli.TOMLDecodeError) as e:
            raise ConfigError(f"Error loading config from {config_path}: {e}")
        apply_config_data(config, data)

    keys_path = find_keys_file(config_path.resolve().parent if config_path else None)
    if keys_path:
        try:
            with open(keys_path, "rb") as f:
                keys_data = tomli.load(f)
        except (OSError, tomli.TOMLDecodeError) as e:
            raise ConfigError(f"Error loading keys from {keys_path}: {e}")

        if "github" in keys_data:
            config.github.token = keys_data["github"].get("token")

    if not config.github.token:
        config.github.token = os.environ.get("GITHUB_TOKEN")

    return config


def get_github_token(config: Config) -> str:
    """Get the GitHub token from config, falling back to the gh CLI."""
    if config.github.token:
        return config.github.token

    try:
        result = subprocess.run(
            ["gh", "auth", "token"],
            capture_output=True,
            text=True,
            timeout=30,
        )
    except FileNotFoundError:
        raise RuntimeError("gh CLI not found. Set GITHUB_TOKEN or install gh and run 'gh auth login'")
    except subprocess.TimeoutExpired:
        raise RuntimeError("Timed out waiting for 'gh auth token'")

    if result.returncode != 0:
        raise RuntimeError(
            f"failed to get token from gh CLI: {result.stderr.strip()}\n"
            "Make sure you're logged in with 'gh auth login'"
        )

    token = result.stdout.strip()
    if not token:
        raise RuntimeError("empty token received from gh CLI")

    config.github.token = token
    return token


def create_default_config() -> None:
    """Create a default .prsummary.toml file in the current directory."""
    config_path = Path(CONFIG_FILE_NAME)

    if config_path.exists():
        raise FileExistsError(f"Configuration file {config_path} already exists")

    default_config = {
        "username": "octocat",
        "days": DEFAULT_DAYS,
        "output_dir": "review",
        "extra_prompt": "",
        "repos": [
            "github/github",
            "github/token-scanning-service",
        ],
        "summarizer": {
            "command": "copilot",
            "args": SummarizerConfig().args,
        },
        "descriptions": {},
    }

    with open(config_path, "wb") as f:
        tomli_w.dump(default_config, f)


def create_default_keys_file() -> None:
    """Create a default .prsummary-keys.toml file in the current directory."""
    keys_path = Path(KEYS_FILE_NAME)

    if keys_path.exists():
        raise FileExistsError(f"Keys file {keys_path} already exists")

    default_keys = {
        "github": {
            "token": "ghp_your_github_token_here"
        }
    }

    with open(keys_path, "wb") as f:
        tomli_w.dump(default_keys, f)


def apply_overrides(
    config: Config,
    username: Optional[str] = None,
    repos: Optional[List[str]] = None,
    since: Optional[str] = None,
    until: Optional[str] = None,
    days: Optional[int] = None,
    output_dir: Optional[str] = None,
    extra_prompt: Optional[str] = None,
) -> Config:
    """Apply command line values on top of the file configuration."""
    if username:
        config.username = username
    if repos:
        config.repos = list(repos)
    if since or until or days is not None:
        # Any date flag replaces the whole date range from the file
        config.since, config.until, config.days = since, until, days
    if output_dir:
        config.output_dir = output_dir
    if extra_prompt:
        config.extra_prompt = extra_prompt
    return config
