"""GitHub Issues transport.

``IssueTransport`` is the capability set the synchronizer reads issues
through and ``IssueSink`` the create-only subset it writes them to;
``IssuesClient`` implements both for one repository on top of
:class:`~issuemirror.github_rest.GitHubRestClient`.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Literal, Protocol

from .github_rest import GitHubRestClient
from .labels import normalize_labels
from .logging import StructuredLogger, get_logger
from .models import Issue, Repository

IssueState = Literal["open", "closed"]


class IssueSink(Protocol):  # pragma: no cover - interface only
    def create_issue(self, issue: Issue) -> Issue: ...


class IssueTransport(IssueSink, Protocol):  # pragma: no cover - interface only
    def get_issue_state(self, number: int) -> IssueState: ...

    def list_issues(
        self, exclude_closed: bool, labels: Sequence[str] | None = None
    ) -> list[Issue]: ...


class IssuesClient:
    """Issue operations scoped to one repository."""

    def __init__(
        self,
        rest: GitHubRestClient,
        repository: Repository,
        logger: StructuredLogger | None = None,
    ):
        self.rest = rest
        self.repository = repository
        self.logger = logger or get_logger()

    def get_issue_state(self, number: int) -> IssueState:
        data = self.rest.get_issue(number)
        return "open" if data.get("state") == "open" else "closed"

    def list_issues(
        self, exclude_closed: bool, labels: Sequence[str] | None = None
    ) -> list[Issue]:
        entries = self.rest.list_issues(
            state="open" if exclude_closed else "all", labels=labels
        )
        return [Issue.from_payload(entry) for entry in entries]

    def create_issue(self, issue: Issue) -> Issue:
        if not issue.title:
            raise ValueError(f"Issue #{issue.number} has no title")
        labels = normalize_labels(issue.labels)
        self.logger.info(
            f"Copying #{issue.number} to target repo {self.repository.slug}, "
            f"labels={json.dumps(labels)}"
        )
        data = self.rest.create_issue(title=issue.title, body=issue.body, labels=labels)
        return Issue.from_payload(data)


__all__ = ["IssueSink", "IssueState", "IssueTransport", "IssuesClient"]
