"""GitHub Project (v2) field resolution & issue assignment.

Features:
    * Project handle lookup memoized on the resolver instance (one remote
      lookup per run, however many issues are assigned)
    * Case-insensitive field name -> field id and option name -> option id
      mapping for single-select fields; the field catalog is fetched fresh on
      every resolution because options can change during long workflows
    * Assigners adding mirrored issues to a board and setting one field
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from .errors import FieldHasNoOptions, FieldNotFound, InvalidPayload, OptionNotFound
from .github_projects import ProjectTransport
from .logging import StructuredLogger, get_logger
from .models import FieldValues, Issue, ProjectHandle


@dataclass
class ProjectConfig:
    organization: str | None
    number: int | None
    field_values: FieldValues | None = None


class ProjectFieldResolver:
    def __init__(
        self,
        transport: ProjectTransport,
        organization: str,
        project_number: int,
        logger: StructuredLogger | None = None,
    ):
        self.transport = transport
        self.organization = organization
        self.project_number = project_number
        self.logger = logger or get_logger()
        self._project: ProjectHandle | None = None

    def fetch_project(self) -> ProjectHandle:
        if self._project is not None:
            return self._project
        self.logger.debug(
            f"Fetching project {self.organization}/{self.project_number}"
        )
        project = self.transport.resolve_project(self.organization, self.project_number)
        # concurrent callers may both fetch; the handle is identical either way
        self._project = project
        return project

    def resolve_field_values(self, project: ProjectHandle, request: FieldValues) -> FieldValues:
        """Translate ``{field name, option name}`` into ``{field id, option id}``."""
        fields = self.transport.list_fields(project.id)

        wanted_field = request.field.casefold()
        custom_field = next((f for f in fields if f.name.casefold() == wanted_field), None)
        if custom_field is None:
            raise FieldNotFound(request.field)
        if not custom_field.options:
            raise FieldHasNoOptions(request.field)
        self.logger.debug(f"Custom field '{request.field}' was found.")

        wanted_value = request.value.casefold()
        option = next(
            (o for o in custom_field.options if o.name.casefold() == wanted_value), None
        )
        if option is None:
            raise OptionNotFound(request.value, [o.name for o in custom_field.options])
        self.logger.debug(f"Field option '{request.value}' was found.")

        return FieldValues(field=custom_field.id, value=option.id)


class ProjectAssigner(Protocol):  # pragma: no cover - interface only
    def assign(self, issue: Issue) -> str | None: ...


class NoopProjectAssigner:
    def assign(self, issue: Issue) -> str | None:
        return None


class GitHubProjectAssigner:
    """Add issues to a project board, optionally setting one single-select field."""

    def __init__(
        self,
        resolver: ProjectFieldResolver,
        transport: ProjectTransport,
        field_values: FieldValues | None = None,
        logger: StructuredLogger | None = None,
    ):
        self.resolver = resolver
        self.transport = transport
        self.field_values = field_values
        self.logger = logger or get_logger()

    def assign(self, issue: Issue) -> str:
        if not issue.node_id:
            raise InvalidPayload(f"Issue #{issue.number} has no node id; cannot add it to a project")
        project = self.resolver.fetch_project()
        self.logger.info(f"Syncing issue #{issue.number} for {project.title}")
        item_id = self.transport.add_item(project.id, issue.node_id)
        if self.field_values is not None:
            resolved = self.resolver.resolve_field_values(project, self.field_values)
            self.transport.set_field_value(project.id, item_id, resolved.field, resolved.value)
            self.logger.info(
                f"Set '{self.field_values.field}' to '{self.field_values.value}' "
                f"for issue #{issue.number}"
            )
        return item_id


def build_project_assigner(
    cfg: ProjectConfig,
    transport: ProjectTransport,
    logger: StructuredLogger | None = None,
) -> ProjectAssigner:
    if not cfg.organization or not cfg.number:
        return NoopProjectAssigner()
    resolver = ProjectFieldResolver(transport, cfg.organization, cfg.number, logger)
    return GitHubProjectAssigner(resolver, transport, cfg.field_values, logger)


__all__ = [
    "GitHubProjectAssigner",
    "NoopProjectAssigner",
    "ProjectAssigner",
    "ProjectConfig",
    "ProjectFieldResolver",
    "build_project_assigner",
]
