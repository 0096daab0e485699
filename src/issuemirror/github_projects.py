"""GitHub Projects (v2) transport over GraphQL.

Projects v2 has no REST surface, so every operation here is a GraphQL
query or mutation sent through :meth:`GitHubRestClient.graphql`. Failures
are re-raised as :class:`~issuemirror.errors.TransportFailure` naming the
operation, with the HTTP/GraphQL error chained as the cause.

The field catalog is read with a single ``fields(first: 20)`` page; fields
beyond that page are not visible to the resolver.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol

import requests

from .errors import TransportFailure
from .github_rest import GitHubAPIError, GitHubRestClient
from .logging import StructuredLogger, get_logger
from .models import FieldDescriptor, Issue, ProjectHandle

PROJECT_FIELDS_PAGE_SIZE = 20

PROJECT_QUERY = """
query($organization: String!, $number: Int!) {
  organization(login: $organization) {
    projectV2(number: $number) {
      id
      title
    }
  }
}
"""

PROJECT_FIELDS_QUERY = """
query($project: ID!, $first: Int!) {
  node(id: $project) {
    ... on ProjectV2 {
      fields(first: $first) {
        nodes {
          ... on ProjectV2Field {
            id
            name
          }
          ... on ProjectV2IterationField {
            id
            name
          }
          ... on ProjectV2SingleSelectField {
            id
            name
            options {
              id
              name
            }
          }
        }
      }
    }
  }
}
"""

ADD_ITEM_MUTATION = """
mutation($project: ID!, $issue: ID!) {
  addProjectV2ItemById(input: {projectId: $project, contentId: $issue}) {
    item {
      id
    }
  }
}
"""

UPDATE_ITEM_FIELD_MUTATION = """
mutation($project: ID!, $item: ID!, $field: ID!, $option: String!) {
  updateProjectV2ItemFieldValue(
    input: {projectId: $project, itemId: $item, fieldId: $field, value: {singleSelectOptionId: $option}}
  ) {
    projectV2Item { id }
  }
}
"""

FIND_REPOSITORY_QUERY = """
query($organization: String!, $repo: String!) {
  repository(owner: $organization, name: $repo) {
    id
  }
}
"""

CREATE_ISSUE_MUTATION = """
mutation($repository: ID!, $title: String!, $body: String!) {
  createIssue(input: {repositoryId: $repository, title: $title, body: $body}) {
    issue {
      id
      number
      title
      body
    }
  }
}
"""


class ProjectTransport(Protocol):  # pragma: no cover - interface only
    def resolve_project(self, organization: str, number: int) -> ProjectHandle: ...

    def list_fields(self, project_id: str) -> list[FieldDescriptor]: ...

    def add_item(self, project_id: str, issue_node_id: str) -> str: ...

    def set_field_value(
        self, project_id: str, item_id: str, field_id: str, option_id: str
    ) -> None: ...

    def create_issue_in_org(
        self, organization: str, repo: str, title: str, body: str
    ) -> Issue: ...


def _dig(payload: Any, *keys: str) -> Any:
    current = payload
    for key in keys:
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
    return current


class ProjectsClient:
    """GraphQL implementation of :class:`ProjectTransport`.

    Requires a token with the ``project`` scope (``read:project`` for lookups
    only) and, for organization projects, ``read:org``.
    """

    def __init__(self, rest: GitHubRestClient, logger: StructuredLogger | None = None):
        self.rest = rest
        self.logger = logger or get_logger()

    def _execute(self, operation: str, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        try:
            return self.rest.graphql(query, variables)
        except (GitHubAPIError, requests.RequestException) as exc:
            raise TransportFailure(f"Failed while executing the '{operation}' query") from exc

    def resolve_project(self, organization: str, number: int) -> ProjectHandle:
        data = self._execute(
            "PROJECT_QUERY", PROJECT_QUERY, {"organization": organization, "number": number}
        )
        node = _dig(data, "organization", "projectV2")
        if not isinstance(node, Mapping) or not isinstance(node.get("id"), str):
            raise TransportFailure(
                f"Project {organization}/{number} not found or not accessible with provided token"
            )
        return ProjectHandle(id=node["id"], title=str(node.get("title") or ""))

    def list_fields(self, project_id: str) -> list[FieldDescriptor]:
        data = self._execute(
            "PROJECT_FIELDS_QUERY",
            PROJECT_FIELDS_QUERY,
            {"project": project_id, "first": PROJECT_FIELDS_PAGE_SIZE},
        )
        nodes = _dig(data, "node", "fields", "nodes")
        if not isinstance(nodes, list):
            raise TransportFailure(f"Project {project_id} returned no field catalog")
        fields = [
            FieldDescriptor.from_payload(node)
            for node in nodes
            if isinstance(node, Mapping) and isinstance(node.get("name"), str)
        ]
        self.logger.debug(f"Project {project_id} exposes {len(fields)} fields")
        return fields

    def add_item(self, project_id: str, issue_node_id: str) -> str:
        data = self._execute(
            "ADD_ITEM_MUTATION",
            ADD_ITEM_MUTATION,
            {"project": project_id, "issue": issue_node_id},
        )
        item_id = _dig(data, "addProjectV2ItemById", "item", "id")
        if not isinstance(item_id, str):
            raise TransportFailure("Adding the issue to the project returned no item id")
        return item_id

    def set_field_value(
        self, project_id: str, item_id: str, field_id: str, option_id: str
    ) -> None:
        data = self._execute(
            "UPDATE_ITEM_FIELD_MUTATION",
            UPDATE_ITEM_FIELD_MUTATION,
            {"project": project_id, "item": item_id, "field": field_id, "option": option_id},
        )
        self.logger.debug(f"Field update returned {data}")

    def create_issue_in_org(
        self, organization: str, repo: str, title: str, body: str
    ) -> Issue:
        found = self._execute(
            "FIND_REPOSITORY_QUERY",
            FIND_REPOSITORY_QUERY,
            {"organization": organization, "repo": repo},
        )
        repository_id = _dig(found, "repository", "id")
        if not isinstance(repository_id, str):
            raise TransportFailure(f"Repository {organization}/{repo} not found")
        created = self._execute(
            "CREATE_ISSUE_MUTATION",
            CREATE_ISSUE_MUTATION,
            {"repository": repository_id, "title": title, "body": body},
        )
        issue = _dig(created, "createIssue", "issue")
        if not isinstance(issue, Mapping):
            raise TransportFailure("Issue creation returned an unexpected payload")
        return Issue(
            number=issue.get("number"),
            title=issue.get("title"),
            body=issue.get("body"),
            node_id=issue.get("id"),
        )


class ProjectIssueTarget:
    """Issue sink creating destination issues through GraphQL.

    Labels are not carried on this path.
    """

    def __init__(
        self,
        projects: ProjectTransport,
        organization: str,
        repo: str,
        logger: StructuredLogger | None = None,
    ):
        self.projects = projects
        self.organization = organization
        self.repo = repo
        self.logger = logger or get_logger()

    def create_issue(self, issue: Issue) -> Issue:
        if not issue.title:
            raise ValueError(f"Issue #{issue.number} has no title")
        self.logger.info(f"Creating issue #{issue.number} in org={self.organization}")
        return self.projects.create_issue_in_org(
            self.organization, self.repo, issue.title, issue.body or ""
        )


__all__ = [
    "PROJECT_FIELDS_PAGE_SIZE",
    "ProjectIssueTarget",
    "ProjectTransport",
    "ProjectsClient",
]
