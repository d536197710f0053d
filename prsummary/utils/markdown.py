"""Markdown rendering of merged pull requests."""

from pathlib import Path
from typing import Dict, List, Optional

from .dates import format_timestamp
from .descriptions import Policy, build_policy_table, select_description
from .github import PullRequestInfo


def group_by_repository(prs: List[PullRequestInfo]) -> Dict[str, List[PullRequestInfo]]:
    """Group PRs by repository, keeping the order repositories first appear in."""
    groups: Dict[str, List[PullRequestInfo]] = {}
    for pr in prs:
        groups.setdefault(pr.repository, []).append(pr)
    return groups


def render_pr(pr: PullRequestInfo, policies: Dict[str, Policy]) -> str:
    lines = [
        f"### [{pr.title}]({pr.url})",
        "",
        "| Field | Value |",
        "|-------|-------|",
        f"| **Created** | {format_timestamp(pr.created_at)} |",
        f"| **Link** | <{pr.url}> |",
    ]
    if pr.merged_at is not None:
        lines.append(f"| **Merged** | {format_timestamp(pr.merged_at)} |")
    else:
        lines.append("| **Merged** | *Not available* |")
    lines.extend(["", "#### Description", ""])

    if pr.description.strip():
        lines.append(select_description(pr.repository, pr.description, policies))
    else:
        lines.append("*No description provided.*")

    lines.extend(["", "---", "", ""])
    return "\n".join(lines)


def render_prs_markdown(prs: List[PullRequestInfo], policies: Optional[Dict[str, Policy]] = None) -> str:
    """Render PRs as a markdown document grouped by repository."""
    if policies is None:
        policies = build_policy_table()

    parts = [
        "# Merged Pull Requests\n\n",
        f"Found {len(prs)} merged pull requests.\n\n",
    ]

    if not prs:
        parts.append("*No merged PRs found.*\n")
        return "".join(parts)

    for repo, repo_prs in group_by_repository(prs).items():
        parts.append(f"## {repo}\n\n")
        for pr in repo_prs:
            parts.append(render_pr(pr, policies))

    return "".join(parts)


def write_prs_markdown(prs: List[PullRequestInfo], path: Path, policies: Optional[Dict[str, Policy]] = None) -> None:
    """Write the rendered PR descriptions to ``path``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_prs_markdown(prs, policies), encoding="utf-8")
