"""Jira API client wrapper (REST v3 + enhanced search pagination)."""

from __future__ import annotations

import hashlib
import json
import time
from typing import Any

from jira import JIRA, JIRAError
from requests import RequestException

from .config import SETTINGS


class JiraFetchError(RuntimeError):
    """Network, auth, or payload failure while talking to Jira."""


class JiraAPI:
    def __init__(self, server: str, email: str, token: str):
        self.server = server.rstrip("/")
        if not self.server.startswith("http"):
            self.server = f"https://{self.server}"
        try:
            self.client = JIRA(
                basic_auth=(email, token), options={"server": self.server, "rest_api_version": "3"}
            )
        except (JIRAError, RequestException) as exc:
            raise JiraFetchError(f"Cannot open a Jira session on {self.server}: {exc}") from exc
        # Simple in-memory cache: {(hash): (timestamp, data)}
        self._cache: dict[str, tuple[float, list]] = {}
        self._cache_ttl = SETTINGS.jira_cache_ttl

    def clear_cache(self) -> None:
        """Reset the in-memory search cache."""
        cache = getattr(self, "_cache", None)
        if isinstance(cache, dict):
            cache.clear()

    def _cache_key(self, jql: str, fields, expand, page_size: int) -> str:
        payload = {
            "jql": jql,
            "fields": fields,
            "expand": expand,
            "page_size": page_size,
        }
        return hashlib.sha256(json.dumps(payload, sort_keys=True).encode()).hexdigest()

    def search_enhanced(
        self,
        jql: str,
        fields: list[str] | None = None,
        expand: list[str] | None = None,
        page_size: int = SETTINGS.jira_page_size,
    ) -> list[dict[str, Any]]:
        session = getattr(self.client, "_session", None)
        if session is None:
            raise JiraFetchError("JIRA session unavailable")
        url = f"{self.server}/rest/api/3/search/jql"
        key = self._cache_key(jql, fields, expand, page_size)
        now = time.time()
        cached = self._cache.get(key)
        if cached and (now - cached[0]) < self._cache_ttl:
            return cached[1]
        params = {"jql": jql, "maxResults": page_size}
        if fields:
            params["fields"] = ",".join(fields)
        if expand:
            params["expand"] = ",".join(expand)
        out: list[dict[str, Any]] = []
        token = None
        while True:
            qp = dict(params)
            if token:
                qp["nextPageToken"] = token
            try:
                resp = session.get(url, params=qp)
            except (JIRAError, RequestException) as exc:  # pragma: no cover - network error path
                raise JiraFetchError(f"Enhanced search failed: {exc}") from exc
            if resp.status_code >= 400:
                raise JiraFetchError(f"Enhanced search failed {resp.status_code}: {resp.text[:200]}")
            data = resp.json()
            out.extend(data.get("issues", []))
            token = data.get("nextPageToken")
            if not token or data.get("isLast") is True:
                break
        self._cache[key] = (now, out)
        return out

    def fetch_issue_raw(self, issue_key: str) -> dict[str, Any]:
        try:
            issue = self.client.issue(issue_key, expand="changelog")
        except JIRAError as exc:  # pragma: no cover - network error path
            raise JiraFetchError(f"Failed to fetch issue {issue_key}: {exc}") from exc
        if hasattr(issue, "raw"):
            return issue.raw
        if isinstance(issue, dict):
            return issue
        raise JiraFetchError(f"Unexpected issue payload type for {issue_key}: {type(issue)!r}")

    def get_projects(self) -> list[dict[str, Any]]:
        try:
            projects = self.client.projects()
        except JIRAError as exc:  # pragma: no cover - network error path
            raise JiraFetchError(f"Failed to fetch projects: {exc}") from exc
        return [{"key": p.key, "id": p.id, "name": p.name} for p in projects]

    def test_connection(self) -> bool:
        try:
            self.client.myself()
        except (JIRAError, RequestException):
            return False
        return True
