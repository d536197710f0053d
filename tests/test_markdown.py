from datetime import datetime

import pytz

from prsummary.utils.descriptions import build_policy_table
from prsummary.utils.github import PullRequestInfo
from prsummary.utils.markdown import group_by_repository, render_prs_markdown, write_prs_markdown

TEMPLATE_BODY = "### What are you trying to accomplish?\n\nShip the widget.\n\n### How is it being implemented?\n\nCarefully."


def make_pr(repository="acme/widgets", number=1, description="Plain body.", merged=True):
    return PullRequestInfo(
        repository=repository,
        number=number,
        title=f"PR {number}",
        description=description,
        url=f"https://github.com/{repository}/pull/{number}",
        created_at=datetime(2024, 3, 1, 9, 30, 0, tzinfo=pytz.utc),
        merged_at=datetime(2024, 3, 2, 17, 5, 9, tzinfo=pytz.utc) if merged else None,
    )


def test_render_empty_report():
    assert render_prs_markdown([]) == (
        "# Merged Pull Requests\n\n"
        "Found 0 merged pull requests.\n\n"
        "*No merged PRs found.*\n"
    )


def test_render_single_pr():
    output = render_prs_markdown([make_pr()])

    assert output == (
        "# Merged Pull Requests\n\n"
        "Found 1 merged pull requests.\n\n"
        "## acme/widgets\n\n"
        "### [PR 1](https://github.com/acme/widgets/pull/1)\n\n"
        "| Field | Value |\n"
        "|-------|-------|\n"
        "| **Created** | 2024-03-01 09:30:00 |\n"
        "| **Link** | <https://github.com/acme/widgets/pull/1> |\n"
        "| **Merged** | 2024-03-02 17:05:09 |\n\n"
        "#### Description\n\n"
        "Plain body.\n\n"
        "---\n\n"
    )


def test_render_missing_merge_time_and_description():
    output = render_prs_markdown([make_pr(description="  \n ", merged=False)])

    assert "| **Merged** | *Not available* |" in output
    assert "#### Description\n\n*No description provided.*\n\n---" in output


def test_render_applies_repository_policy():
    prs = [
        make_pr(repository="github/token-scanning-service", number=1, description=TEMPLATE_BODY),
        make_pr(repository="acme/widgets", number=2, description=TEMPLATE_BODY),
    ]

    output = render_prs_markdown(prs)

    tss_section, widgets_section = output.split("## acme/widgets")
    assert "#### Description\n\nShip the widget.\n\n---" in tss_section
    assert "Carefully." not in tss_section
    assert TEMPLATE_BODY in widgets_section


def test_render_uses_custom_policy_table():
    policies = build_policy_table({"acme/widgets": "first-section"})

    output = render_prs_markdown([make_pr(description=TEMPLATE_BODY)], policies)

    assert "Carefully." not in output
    assert "Ship the widget." in output


def test_repositories_keep_first_appearance_order():
    prs = [
        make_pr(repository="b/two", number=1),
        make_pr(repository="a/one", number=2),
        make_pr(repository="b/two", number=3),
    ]

    groups = group_by_repository(prs)
    assert list(groups) == ["b/two", "a/one"]
    assert [pr.number for pr in groups["b/two"]] == [1, 3]

    output = render_prs_markdown(prs)
    assert output.index("## b/two") < output.index("## a/one")
    assert output.count("## b/two") == 1


def test_write_prs_markdown(tmp_path):
    path = tmp_path / "out" / "prs.md"

    write_prs_markdown([make_pr()], path)

    assert path.read_text(encoding="utf-8").startswith("# Merged Pull Requests\n\nFound 1 merged pull requests.")
