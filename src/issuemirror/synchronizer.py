"""Event classification and per-issue mirroring decisions.

``Synchronizer.synchronize_issue`` handles one automation event:

* ``workflow_dispatch`` mirrors every source issue (optionally open ones
  only) carrying a required label, all creations running concurrently;
* ``issues`` mirrors the issue in the payload when the assignment
  predicate accepts it;
* any other event name fails the run.

Labeling events are judged by the label that triggered them, every other
action by the issue's current label set.
"""

from __future__ import annotations

import dataclasses
import json
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, TypeVar

from .concurrency import call_async, gather_settled
from .errors import (
    InvalidPayload,
    MirrorError,
    MissingLabelOnEvent,
    TransportFailure,
    UnsupportedEvent,
)
from .github_issues import IssueSink, IssueTransport
from .labels import any_match, normalize_labels
from .logging import StructuredLogger, get_logger
from .models import EventPayload, Issue, SyncContext
from .project import ProjectAssigner

T = TypeVar("T")

WORKFLOW_DISPATCH = "workflow_dispatch"
ISSUES = "issues"


def _payload_json(payload: EventPayload) -> str:
    return json.dumps(dataclasses.asdict(payload), default=str)


class Synchronizer:
    def __init__(
        self,
        source: IssueTransport,
        target: IssueSink,
        logger: StructuredLogger | None = None,
        *,
        sync_labels: bool = True,
        project_assigner: ProjectAssigner | None = None,
    ):
        self.source = source
        self.target = target
        self.logger = logger or get_logger()
        self.sync_labels = sync_labels
        self.project_assigner = project_assigner

    async def synchronize_issue(self, context: SyncContext) -> Issue | list[Issue] | None:
        if context.event_name == WORKFLOW_DISPATCH:
            exclude_closed = context.payload.inputs.get("excludeClosed") == "true"
            self.logger.notice(
                "Closed issues will NOT be synced."
                if exclude_closed
                else "Closed issues will be synced."
            )
            return await self.update_all_issues(exclude_closed, context.labels)

        if context.event_name == ISSUES:
            required = list(context.labels) if context.labels is not None else None
            self.logger.debug(f"Required labels are: '{json.dumps(required)}'")
            self.logger.debug("Payload received: " + _payload_json(context.payload))
            issue = context.payload.issue
            if issue is None:
                raise InvalidPayload("Issue payload object was null")
            self.logger.debug(f"Received event: {context.event_name}")
            if self.should_assign_issue(context.payload, context.labels):
                self.logger.info(f"Copying #{issue.number} to target organization")
                return await self._mirror(issue)
            self.logger.info("Skipped assignment as it didn't fulfill requirements.")
            return None

        self.logger.warning(f"Event '{context.event_name}' is not expected. Failing.")
        raise UnsupportedEvent(context.event_name)

    def should_assign_issue(
        self, payload: EventPayload, labels: Sequence[str] | None = None
    ) -> bool:
        """Decide whether the issue in ``payload`` qualifies for mirroring.

        ``labels`` are the required labels; ``None`` or empty disables
        filtering for everything except labeling events.
        """
        action = payload.action

        if action == "labeled":
            label_name = payload.label.name if payload.label else None
            if not label_name:
                raise MissingLabelOnEvent()

            self.logger.info(f"Label {label_name} was added to the issue.")

            if not labels:
                self.logger.notice("No required labels found for event. Skipping assignment.")
                return False

            if label_name.lower() in {required.lower() for required in labels}:
                self.logger.info(f"Found matching label '{label_name}' in required labels.")
                return True
            self.logger.notice(
                f"Label '{label_name}' does not match any of the labels "
                f"'{json.dumps(list(labels))}'. Skipping."
            )
            return False

        if action == "unlabeled":
            self.logger.warning("No support for 'unlabeled' event. Skipping")
            return False

        if not labels:
            self.logger.info(
                "Matching requirements: not a labeling event and no labels found in the configuration."
            )
            return True

        issue_labels = normalize_labels(payload.issue.labels) if payload.issue else []
        if issue_labels:
            if any_match(issue_labels, labels):
                self.logger.info(
                    "Found matching element between "
                    f"{json.dumps([name.lower() for name in issue_labels])} "
                    f"and {json.dumps(list(labels))}"
                )
                return True
            return False

        # required labels are configured but the issue carries none
        self.logger.debug(
            f"Case {action} not considered. Accepted with the following payload: "
            + _payload_json(payload)
        )
        return True

    async def update_all_issues(
        self, exclude_closed: bool = False, labels: Sequence[str] | None = None
    ) -> list[Issue]:
        issues: list[Issue] = await self._collaborate(
            "Failed to list issues in the source repository",
            self.source.list_issues,
            exclude_closed,
            list(labels) if labels else None,
        )
        if not issues:
            self.logger.notice("No issues found")
            return []
        self.logger.info(f"Updating {len(issues)} issues")

        created, failures = await gather_settled(self._mirror(issue) for issue in issues)
        if failures:
            for failure in failures:
                self.logger.error(f"Failed to mirror issue: {failure}")
            raise TransportFailure(
                f"{len(failures)} of {len(issues)} issues could not be mirrored",
                failures,
            ) from failures[0]
        return created

    async def _mirror(self, issue: Issue) -> Issue:
        outgoing = issue if self.sync_labels else dataclasses.replace(issue, labels=())
        created: Issue = await self._collaborate(
            f"Failed to create issue #{issue.number} in the destination repository",
            self.target.create_issue,
            outgoing,
        )
        if self.project_assigner is not None:
            await self._collaborate(
                f"Failed to add issue #{created.number} to the project",
                self.project_assigner.assign,
                created,
            )
        return created

    async def _collaborate(
        self, failure_message: str, func: Callable[..., Awaitable[T] | T], *args: Any
    ) -> Any:
        try:
            return await call_async(func, *args)
        except MirrorError:
            raise
        except Exception as exc:
            raise TransportFailure(failure_message) from exc


__all__ = ["ISSUES", "WORKFLOW_DISPATCH", "Synchronizer"]
