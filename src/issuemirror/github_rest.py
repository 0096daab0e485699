from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

import requests

from . import __version__
from .retry import run_with_retries

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_GRAPHQL_URL = "https://api.github.com/graphql"
USER_AGENT = f"issuemirror/{__version__}"
HTTP_ERROR_STATUS = 400
REQUEST_TIMEOUT = 30


class GitHubAPIError(RuntimeError):
    """Raised when the GitHub REST/GraphQL API returns an error."""

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        response_text: str | None = None,
    ):
        super().__init__(message)
        self.status = status
        self.response_text = response_text


@dataclass
class GitHubRestClient:
    """Lightweight REST/GraphQL client bound to one token.

    ``repo`` (``owner/name``) scopes the issue helpers; GraphQL calls do not
    need it.
    """

    token: str
    repo: str | None = None
    base_url: str = DEFAULT_API_URL
    graphql_url: str = DEFAULT_GRAPHQL_URL
    session: requests.Session | None = None
    _session: requests.Session = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._session = self.session or requests.Session()
        self._session.headers.setdefault("Authorization", f"Bearer {self.token}")
        self._session.headers.setdefault("Accept", "application/vnd.github+json")
        self._session.headers.setdefault("User-Agent", USER_AGENT)

    # ---- REST helpers -------------------------------------------------
    def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: Any | None = None,
    ) -> Any:
        url = (
            path
            if path.startswith("http")
            else f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"
        )

        def _run() -> requests.Response:
            return self._session.request(
                method,
                url,
                params=params,
                json=json_body,
                headers=self._session.headers,
                timeout=REQUEST_TIMEOUT,
            )

        response = run_with_retries(_run)
        if response.status_code >= HTTP_ERROR_STATUS:
            raise GitHubAPIError(
                f"GitHub API {method} {url} failed with {response.status_code}",
                status=response.status_code,
                response_text=response.text,
            )
        if response.text:
            try:
                return response.json()
            except ValueError as exc:
                raise GitHubAPIError(
                    f"GitHub API {method} {url} returned invalid JSON",
                    status=response.status_code,
                    response_text=response.text,
                ) from exc
        return None

    def _paginate(
        self, path: str, *, params: dict[str, Any] | None = None
    ) -> list[Any]:
        params = dict(params or {})
        per_page = params.setdefault("per_page", 100)
        params.setdefault("page", 1)
        results: list[Any] = []
        while True:
            data = self._request("GET", path, params=params)
            if not isinstance(data, list):
                break
            results.extend(data)
            if len(data) < per_page:
                break
            params["page"] = params.get("page", 1) + 1
        return results

    def _repo_path(self, suffix: str) -> str:
        if not self.repo:
            raise GitHubAPIError("Repository is required for issue operations")
        return f"/repos/{self.repo}/{suffix.lstrip('/')}"

    # ---- Issue operations --------------------------------------------
    def get_issue(self, number: int) -> dict[str, Any]:
        data = self._request("GET", self._repo_path(f"issues/{number}"))
        if not isinstance(data, dict):
            raise GitHubAPIError(f"Unexpected payload for issue #{number}")
        return data

    def list_issues(
        self, *, state: str = "open", labels: Iterable[str] | None = None
    ) -> list[dict[str, Any]]:
        params: dict[str, Any] = {"state": state, "per_page": 100, "page": 1}
        label_list = list(labels or [])
        if label_list:
            params["labels"] = ",".join(label_list)
        data = self._paginate(self._repo_path("issues"), params=params)
        # the issues endpoint also returns pull requests
        return [e for e in data if isinstance(e, dict) and "pull_request" not in e]

    def create_issue(
        self,
        *,
        title: str,
        body: str | None,
        labels: Iterable[str] | None = None,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {"title": title, "body": body or ""}
        label_list = list(labels or [])
        if label_list:
            payload["labels"] = label_list
        data = self._request("POST", self._repo_path("issues"), json_body=payload)
        if not isinstance(data, dict):
            raise GitHubAPIError("Issue creation returned an unexpected payload")
        return data

    # ---- GraphQL ------------------------------------------------------
    def graphql(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        payload = {"query": query, "variables": variables or {}}
        data = self._request("POST", self.graphql_url, json_body=payload)
        if not isinstance(data, dict):
            raise GitHubAPIError("GraphQL query returned an unexpected payload")
        if "errors" in data:
            raise GitHubAPIError(f"GraphQL query failed: {data['errors']}")
        result = data.get("data")
        return result if isinstance(result, dict) else {}


__all__ = [
    "DEFAULT_API_URL",
    "DEFAULT_GRAPHQL_URL",
    "GitHubAPIError",
    "GitHubRestClient",
]
