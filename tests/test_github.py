from datetime import datetime

import pytest
import pytz
import requests

from prsummary.utils import github
from prsummary.utils.github import (
    build_headers,
    build_search_query,
    count_merged_prs,
    fetch_json,
    fetch_merged_prs,
    format_pr_entry,
)

SINCE = datetime(2024, 1, 1, tzinfo=pytz.utc)
UNTIL = datetime(2024, 1, 31, tzinfo=pytz.utc)


class FakeResponse:
    def __init__(self, status_code=200, data=None, headers=None, links=None):
        self.status_code = status_code
        self._data = data
        self.headers = headers or {}
        self.links = links or {}
        self.text = str(data)

    def json(self):
        return self._data


class FakeGet:
    """Stand-in for requests.get that serves canned responses by URL."""

    def __init__(self, routes):
        self.routes = routes
        self.calls = []

    def __call__(self, url, params=None, headers=None, timeout=None):
        self.calls.append((url, params, headers))
        response = self.routes[url]
        if isinstance(response, list):
            response = response.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    monkeypatch.setattr(github.time, "sleep", lambda seconds: None)


def search_item(number, body="issue body"):
    return {
        "number": number,
        "title": f"PR {number}",
        "body": body,
        "html_url": f"https://github.com/acme/widgets/pull/{number}",
        "created_at": "2024-01-05T10:00:00Z",
    }


def test_build_search_query():
    query = build_search_query("acme/widgets", "octocat", SINCE, UNTIL)
    assert query == "repo:acme/widgets is:pr is:merged author:octocat created:2024-01-01..2024-01-31"


def test_build_headers():
    assert "Authorization" not in build_headers(None)
    assert build_headers("abc")["Authorization"] == "Bearer abc"


def test_count_merged_prs(monkeypatch):
    fake = FakeGet({f"{github.API_URL}/search/issues": FakeResponse(data={"total_count": 7, "items": []})})
    monkeypatch.setattr(github.requests, "get", fake)

    assert count_merged_prs("acme/widgets", "octocat", SINCE, UNTIL, "tok") == 7

    _, params, headers = fake.calls[0]
    assert params["per_page"] == 1
    assert params["q"].startswith("repo:acme/widgets is:pr is:merged")
    assert headers["Authorization"] == "Bearer tok"


def test_count_merged_prs_forbidden(monkeypatch):
    response = FakeResponse(status_code=403, headers={"X-RateLimit-Remaining": "0"})
    monkeypatch.setattr(github.requests, "get", FakeGet({f"{github.API_URL}/search/issues": response}))

    assert count_merged_prs("acme/widgets", "octocat", SINCE, UNTIL, None) is None


def test_fetch_json_retries_server_errors(monkeypatch):
    url = f"{github.API_URL}/thing"
    fake = FakeGet({url: [FakeResponse(status_code=502), FakeResponse(data={"ok": True})]})
    monkeypatch.setattr(github.requests, "get", fake)

    assert fetch_json(url, {}) == {"ok": True}
    assert len(fake.calls) == 2


def test_fetch_json_gives_up_after_retries(monkeypatch):
    url = f"{github.API_URL}/thing"
    fake = FakeGet({url: [requests.ConnectionError("boom") for _ in range(github.MAX_RETRIES)]})
    monkeypatch.setattr(github.requests, "get", fake)

    assert fetch_json(url, {}) is None
    assert len(fake.calls) == github.MAX_RETRIES


def test_fetch_json_does_not_retry_not_found(monkeypatch):
    url = f"{github.API_URL}/thing"
    fake = FakeGet({url: [FakeResponse(status_code=404)]})
    monkeypatch.setattr(github.requests, "get", fake)

    assert fetch_json(url, {}) is None
    assert len(fake.calls) == 1


def test_format_pr_entry_prefers_pr_body():
    pr = format_pr_entry(
        "acme/widgets",
        search_item(3),
        {"body": "full PR body", "merged_at": "2024-01-06T08:30:00Z"},
    )

    assert pr.number == 3
    assert pr.description == "full PR body"
    assert pr.created_at == datetime(2024, 1, 5, 10, 0, tzinfo=pytz.utc)
    assert pr.merged_at == datetime(2024, 1, 6, 8, 30, tzinfo=pytz.utc)


def test_format_pr_entry_without_details():
    pr = format_pr_entry("acme/widgets", search_item(3, body=None), None)

    assert pr.description == ""
    assert pr.merged_at is None


def test_format_pr_entry_keeps_issue_body_when_pr_body_empty():
    pr = format_pr_entry("acme/widgets", search_item(3), {"body": "", "merged_at": None})

    assert pr.description == "issue body"


def test_fetch_merged_prs_follows_pagination(monkeypatch):
    next_url = f"{github.API_URL}/search/issues?page=2"
    fake = FakeGet({
        f"{github.API_URL}/search/issues": FakeResponse(
            data={"items": [search_item(1), search_item(2)]},
            links={"next": {"url": next_url}},
        ),
        next_url: FakeResponse(data={"items": [search_item(3)]}),
        f"{github.API_URL}/repos/acme/widgets/pulls/1": FakeResponse(
            data={"body": "body one", "merged_at": "2024-01-06T00:00:00Z"}
        ),
        f"{github.API_URL}/repos/acme/widgets/pulls/2": FakeResponse(status_code=404),
        f"{github.API_URL}/repos/acme/widgets/pulls/3": FakeResponse(
            data={"body": "body three", "merged_at": "2024-01-07T00:00:00Z"}
        ),
    })
    monkeypatch.setattr(github.requests, "get", fake)
    seen = []

    prs = fetch_merged_prs("acme/widgets", "octocat", SINCE, UNTIL, "tok", on_progress=seen.append)

    assert [pr.number for pr in prs] == [1, 2, 3]
    assert [pr.description for pr in prs] == ["body one", "issue body", "body three"]
    assert prs[1].merged_at is None
    assert seen == prs

    first_search = fake.calls[0]
    assert first_search[1]["per_page"] == github.PER_PAGE
    next_search = [call for call in fake.calls if call[0] == next_url][0]
    assert next_search[1] is None


def test_fetch_merged_prs_search_failure(monkeypatch):
    fake = FakeGet({f"{github.API_URL}/search/issues": FakeResponse(status_code=500)})
    monkeypatch.setattr(github.requests, "get", fake)

    assert fetch_merged_prs("acme/widgets", "octocat", SINCE, UNTIL, None) is None


class HTMLResponse(FakeResponse):
    def json(self):
        raise ValueError("Expecting value: line 1 column 1 (char 0)")


def test_fetch_merged_prs_invalid_json(monkeypatch):
    fake = FakeGet({f"{github.API_URL}/search/issues": HTMLResponse(data="<html>maintenance</html>")})
    monkeypatch.setattr(github.requests, "get", fake)

    assert fetch_merged_prs("acme/widgets", "octocat", SINCE, UNTIL, None) is None
    assert len(fake.calls) == 1
