"""GitHub REST API utilities for finding a user's merged pull requests."""

import time
import requests
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from .dates import format_date, parse_timestamp
from .logging import debug, error, warning
from .paths import parse_repo

API_URL = "https://api.github.com"
PER_PAGE = 100
MAX_RETRIES = 3


@dataclass
class PullRequestInfo:
    """The parts of a pull request that end up in the report."""
    repository: str
    number: int
    title: str
    description: str
    url: str
    created_at: datetime
    merged_at: Optional[datetime] = None


def build_headers(token: Optional[str]) -> Dict[str, str]:
    headers = {
        "Accept": "application/vnd.github+json",
        "User-Agent": "prsummary",
    }
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def build_search_query(repo: str, username: str, since: datetime, until: datetime) -> str:
    """Create the issue search query for a user's merged PRs in a repository."""
    owner, name = parse_repo(repo)
    query = (
        f"repo:{owner}/{name} is:pr is:merged author:{username} "
        f"created:{format_date(since)}..{format_date(until)}"
    )
    debug(f"GitHub search query for {repo}: {query}")
    return query


def fetch_response(url: str, headers: Dict[str, str], params: Optional[Dict[str, Any]] = None) -> Optional[requests.Response]:
    """GET a GitHub API URL with retries, returning None on failure."""
    for attempt in range(MAX_RETRIES):
        try:
            response = requests.get(url, params=params, headers=headers, timeout=30)

            if response.status_code == 200:
                return response
            elif response.status_code == 403:
                error("HTTP 403 Forbidden: Access denied or rate limit exceeded")

                rate_limit_remaining = response.headers.get("X-RateLimit-Remaining")
                rate_limit_reset = response.headers.get("X-RateLimit-Reset")

                if rate_limit_remaining == "0":
                    reset_time = datetime.fromtimestamp(int(rate_limit_reset)) if rate_limit_reset else None
                    if reset_time:
                        wait_time = (reset_time - datetime.now()).total_seconds()
                        error(f"Rate limit exceeded. Resets at {reset_time} (in {wait_time:.0f} seconds)")
                    else:
                        error("Rate limit exceeded. Please wait before retrying.")
                else:
                    error("Access forbidden. Check your token permissions and repository access.")

                # Don't retry on 403 errors
                return None
            elif response.status_code in [502, 503, 504]:
                if attempt < MAX_RETRIES - 1:
                    warning(f"GitHub API returned {response.status_code}, retrying in {2 ** attempt} seconds...")
                    time.sleep(2 ** attempt)
                    continue
                error(f"GitHub API returned {response.status_code} after {MAX_RETRIES} attempts")
                return None
            elif response.status_code == 422:
                error(f"GitHub rejected the search query: {response.text}")
                return None
            else:
                error(f"Error fetching {url}: {response.status_code}")
                return None
        except requests.RequestException as e:
            if attempt < MAX_RETRIES - 1:
                warning(f"Request failed: {e}, retrying in {2 ** attempt} seconds...")
                time.sleep(2 ** attempt)
                continue
            error(f"Failed to fetch {url} after {MAX_RETRIES} attempts: {e}")
            return None

    return None


def fetch_json(url: str, headers: Dict[str, str], params: Optional[Dict[str, Any]] = None) -> Optional[Any]:
    """GET a GitHub API URL and decode its JSON body."""
    response = fetch_response(url, headers, params)
    if response is None:
        return None
    try:
        return response.json()
    except ValueError as e:
        error(f"Invalid JSON returned from {url}: {e}")
        return None


def count_merged_prs(repo: str, username: str, since: datetime, until: datetime, token: Optional[str]) -> Optional[int]:
    """Count the merged PRs for a repository without fetching their details."""
    params = {
        "q": build_search_query(repo, username, since, until),
        "sort": "created",
        "order": "desc",
        "per_page": 1,
    }
    result = fetch_json(f"{API_URL}/search/issues", build_headers(token), params)
    if result is None:
        return None
    return result.get("total_count", 0)


def fetch_pr_details(repo: str, number: int, headers: Dict[str, str]) -> Optional[Dict[str, Any]]:
    """Fetch the pull request resource, which carries the merge time."""
    owner, name = parse_repo(repo)
    return fetch_json(f"{API_URL}/repos/{owner}/{name}/pulls/{number}", headers)


def format_pr_entry(repo: str, issue: Dict[str, Any], details: Optional[Dict[str, Any]]) -> PullRequestInfo:
    """Combine a search result and its PR details into a PullRequestInfo."""
    pr = PullRequestInfo(
        repository=repo,
        number=issue["number"],
        title=issue.get("title", ""),
        description=issue.get("body") or "",
        url=issue.get("html_url", ""),
        created_at=parse_timestamp(issue.get("created_at")),
    )

    if details is not None:
        # The PR body is more complete than the issue body
        if details.get("body"):
            pr.description = details["body"]
        pr.merged_at = parse_timestamp(details.get("merged_at"))

    return pr


def fetch_merged_prs(
    repo: str,
    username: str,
    since: datetime,
    until: datetime,
    token: Optional[str],
    on_progress: Optional[Callable[[PullRequestInfo], None]] = None,
) -> Optional[List[PullRequestInfo]]:
    """Fetch every merged PR by ``username`` in ``repo`` within the date range."""
    headers = build_headers(token)
    url = f"{API_URL}/search/issues"
    params: Optional[Dict[str, Any]] = {
        "q": build_search_query(repo, username, since, until),
        "sort": "created",
        "order": "desc",
        "per_page": PER_PAGE,
    }

    prs = []
    while url:
        response = fetch_response(url, headers, params)
        if response is None:
            return None

        try:
            page = response.json()
        except ValueError as e:
            error(f"Invalid JSON returned from {url}: {e}")
            return None

        for issue in page.get("items", []):
            details = fetch_pr_details(repo, issue["number"], headers)
            if details is None:
                warning(f"Failed to get PR details for {repo}#{issue['number']}")

            pr = format_pr_entry(repo, issue, details)
            prs.append(pr)
            if on_progress:
                on_progress(pr)

        # The next link already carries the query string
        url = response.links.get("next", {}).get("url")
        params = None

    return prs
