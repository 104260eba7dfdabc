from __future__ import annotations

from typing import Any
from urllib.parse import quote

import requests

from changed_files_ci.models import ChangedFile, CompareResult

DEFAULT_API_URL = "https://api.github.com"
API_VERSION = "2022-11-28"


def _compare_url(api_url: str, owner: str, repo: str, base: str, head: str) -> str:
    base_url = (api_url or DEFAULT_API_URL).rstrip("/")
    basehead = f"{quote(base, safe='')}...{quote(head, safe='')}"
    return f"{base_url}/repos/{quote(owner, safe='')}/{quote(repo, safe='')}/compare/{basehead}"


def _parse_files(raw: Any) -> list[ChangedFile] | None:
    if raw is None or not isinstance(raw, list):
        return None
    return [ChangedFile.from_api(item) for item in raw if isinstance(item, dict)]


def compare_commits(
    owner: str,
    repo: str,
    base: str,
    head: str,
    token: str,
    api_url: str = DEFAULT_API_URL,
    timeout: int = 30,
) -> CompareResult:
    """Compare two commits through the GitHub REST API.

    Non-2xx responses are returned, not raised, so the caller can report
    them and carry on with whatever the body contained.
    """
    resp = requests.get(
        _compare_url(api_url, owner, repo, base, head),
        headers={
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": API_VERSION,
        },
        timeout=timeout,
    )

    try:
        data = resp.json()
    except ValueError:
        # error pages are not always JSON
        data = {}
    if not isinstance(data, dict):
        data = {}

    status = data.get("status")
    return CompareResult(
        http_status=resp.status_code,
        status=status if isinstance(status, str) else None,
        files=_parse_files(data.get("files")),
    )
