"""Extraction of the relevant part of a pull request description.

Some repositories use a PR template whose first section is the only part
worth putting into the report. Each repository can be mapped to a policy
that picks that part out; anything not in the table is passed through.
"""

from typing import Callable, Dict, List, Optional

ACCOMPLISH_MARKER = "### What are you trying to accomplish?"
APPROACH_MARKER = "### What approach did you choose and why?"
SECTION_PREFIX = "###"

COMMENT_OPEN = "<!--"
COMMENT_CLOSE = "-->"

Policy = Callable[[str], str]


def strip_html_comments(text: str) -> str:
    """Remove HTML comment lines, preserving every other line verbatim."""
    kept = []
    in_comment = False

    for line in text.split("\n"):
        stripped = line.strip()

        # A one-line comment leaves the state alone, even inside a block
        if stripped.startswith(COMMENT_OPEN) and stripped.endswith(COMMENT_CLOSE):
            continue

        if in_comment:
            if stripped.endswith(COMMENT_CLOSE):
                in_comment = False
            continue

        if stripped.startswith(COMMENT_OPEN):
            in_comment = True
            continue

        kept.append(line)

    return "\n".join(kept)


def strip_leading_noise(lines: List[str]) -> List[str]:
    """Drop blank lines and HTML comments that come before any content."""
    in_comment = False

    for index, line in enumerate(lines):
        stripped = line.strip()

        if stripped.startswith(COMMENT_OPEN) and stripped.endswith(COMMENT_CLOSE):
            continue

        if in_comment:
            if stripped.endswith(COMMENT_CLOSE):
                in_comment = False
            continue

        if not stripped:
            continue

        if stripped.startswith(COMMENT_OPEN):
            in_comment = True
            continue

        return lines[index:]

    return []


def extract_first_section(description: str) -> str:
    """Return the body of the "What are you trying to accomplish?" section.

    Capture stops at the next line starting with ``###``. That includes
    ``####`` sub-headers, which is a quirk of the prefix match rather than
    intended nesting support. If nothing is captured the description is
    returned untouched.
    """
    section = []
    capturing = False

    for line in description.split("\n"):
        stripped = line.strip()

        if not capturing:
            if stripped.startswith(ACCOMPLISH_MARKER):
                capturing = True
            continue

        if stripped.startswith(SECTION_PREFIX):
            break

        section.append(line)

    result = "\n".join(section).strip()
    if not result:
        return description
    return result


def extract_description_primary(description: str) -> str:
    """Return the accomplish section, or everything before the approach section.

    The accomplish section is searched for as a raw substring. Comments and
    blank lines at its start are dropped. When that yields nothing the
    description is truncated at the approach header (if present) and all
    HTML comments are removed from what remains.
    """
    index = description.find(ACCOMPLISH_MARKER)
    if index != -1:
        remaining = description[index + len(ACCOMPLISH_MARKER):]

        content = []
        for line in remaining.split("\n"):
            if line.strip().startswith(SECTION_PREFIX):
                break
            content.append(line)

        extracted = "\n".join(strip_leading_noise(content)).strip()
        if extracted:
            return extracted

    index = description.find(APPROACH_MARKER)
    if index != -1:
        description = description[:index]

    return strip_html_comments(description).strip()


def passthrough(description: str) -> str:
    return description


POLICIES: Dict[str, Policy] = {
    "first-section": extract_first_section,
    "accomplish-or-truncate": extract_description_primary,
    "passthrough": passthrough,
}

DEFAULT_REPOSITORY_POLICIES: Dict[str, str] = {
    "github/token-scanning-service": "first-section",
    "github/github": "accomplish-or-truncate",
}


def build_policy_table(overrides: Optional[Dict[str, str]] = None) -> Dict[str, Policy]:
    """Build a repository -> policy table from policy names.

    ``overrides`` is merged over the built-in defaults.
    """
    names = dict(DEFAULT_REPOSITORY_POLICIES)
    if overrides:
        names.update(overrides)

    table = {}
    for repo, policy_name in names.items():
        if policy_name not in POLICIES:
            known = ", ".join(sorted(POLICIES))
            raise ValueError(f"Unknown description policy '{policy_name}' for {repo} (expected one of: {known})")
        table[repo] = POLICIES[policy_name]
    return table


def select_description(repository: str, description: str, policies: Optional[Dict[str, Policy]] = None) -> str:
    """Apply the repository's extraction policy to a PR description."""
    if policies is None:
        policies = build_policy_table()
    policy = policies.get(repository, passthrough)
    return policy(description)
