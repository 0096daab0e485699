"""Runtime helpers: event loading, wiring and exit-code handling."""

from __future__ import annotations

import asyncio
import json
import os
import traceback
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

from .config import ConfigError, MirrorConfig
from .errors import classify_error, iter_causes, redact
from .github_issues import IssueSink, IssuesClient
from .github_projects import ProjectIssueTarget, ProjectsClient
from .github_rest import GitHubRestClient
from .logging import StructuredLogger, get_logger
from .models import EventPayload, Repository, SyncContext
from .project import ProjectConfig, build_project_assigner
from .synchronizer import Synchronizer


def load_event(
    event_name: str | None = None,
    event_path: str | Path | None = None,
    *,
    labels: Sequence[str] | None = None,
    environ: Mapping[str, str] | None = None,
) -> SyncContext:
    """Build the sync context from the runner's ``GITHUB_EVENT_*`` variables."""
    env = os.environ if environ is None else environ
    name = event_name or env.get("GITHUB_EVENT_NAME", "")
    path = event_path or env.get("GITHUB_EVENT_PATH")
    payload: dict[str, Any] = {}
    if path and Path(path).exists():
        try:
            loaded = json.loads(Path(path).read_text(encoding="utf-8"))
        except UnicodeDecodeError as exc:
            raise ConfigError(f"Event payload {path} is not valid UTF-8") from exc
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Event payload {path} is not valid JSON") from exc
        if isinstance(loaded, dict):
            payload = loaded
    return SyncContext(
        event_name=name,
        payload=EventPayload.from_payload(payload),
        labels=tuple(labels) if labels is not None else None,
    )


def resolve_source_repository(
    repo: str | None = None, *, environ: Mapping[str, str] | None = None
) -> Repository:
    env = os.environ if environ is None else environ
    slug = repo or env.get("GITHUB_REPOSITORY")
    if not slug:
        raise ConfigError("Source repository unknown; set GITHUB_REPOSITORY or pass --repo")
    try:
        return Repository.from_slug(slug)
    except ValueError as exc:
        raise ConfigError(str(exc)) from exc


def build_synchronizer(
    config: MirrorConfig,
    source_repo: Repository,
    logger: StructuredLogger | None = None,
) -> Synchronizer:
    logger = logger or get_logger()
    destination_repo = Repository(
        owner=config.destination_org, repo=config.destination_repo or source_repo.repo
    )
    source_rest = GitHubRestClient(
        token=config.github_token,
        repo=source_repo.slug,
        base_url=config.api_url,
        graphql_url=config.graphql_url,
    )
    destination_rest = GitHubRestClient(
        token=config.destination_token or config.github_token,
        repo=destination_repo.slug,
        base_url=config.api_url,
        graphql_url=config.graphql_url,
    )
    projects = ProjectsClient(destination_rest, logger)

    target: IssueSink
    if config.destination_via_graphql:
        target = ProjectIssueTarget(projects, destination_repo.owner, destination_repo.repo, logger)
    else:
        target = IssuesClient(destination_rest, destination_repo, logger)

    assigner = build_project_assigner(
        ProjectConfig(
            organization=config.project_org or config.destination_org,
            number=config.project_number,
            field_values=config.project_field_values,
        ),
        projects,
        logger,
    )
    return Synchronizer(
        IssuesClient(source_rest, source_repo, logger),
        target,
        logger,
        sync_labels=config.sync_labels,
        project_assigner=assigner,
    )


def _format_stack(exc: BaseException) -> str:
    return "".join(traceback.format_exception(type(exc), exc, exc.__traceback__, chain=False))


def report_failure(exc: BaseException, logger: StructuredLogger | None = None) -> None:
    """Log a failed run, walking the cause chain so every layer is visible."""
    logger = logger or get_logger()
    info = classify_error(exc)
    logger.error(info.message, category=info.category, error_type=info.original_type)
    for position, err in enumerate(iter_causes(exc)):
        if position:
            logger.debug("Error has a nested error. Displaying.")
            logger.error(redact(f"{type(err).__name__}: {err}"))
        logger.debug("Stack -> " + redact(_format_stack(err)))


def run(
    synchronizer: Synchronizer,
    context: SyncContext,
    logger: StructuredLogger | None = None,
) -> int:
    logger = logger or get_logger()
    try:
        asyncio.run(synchronizer.synchronize_issue(context))
    except Exception as exc:
        report_failure(exc, logger)
        return 1
    logger.info("Operation finished successfully!")
    return 0


__all__ = [
    "build_synchronizer",
    "load_event",
    "report_failure",
    "resolve_source_repository",
    "run",
]
