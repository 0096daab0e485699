from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .labels import Label, LabelRecord, parse_labels


@dataclass(frozen=True)
class Repository:
    owner: str
    repo: str

    @classmethod
    def from_slug(cls, slug: str) -> Repository:
        owner, sep, repo = slug.strip().partition("/")
        if not sep or not owner or not repo:
            raise ValueError(f"Invalid repository '{slug}'; expected owner/repo")
        return cls(owner=owner, repo=repo)

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.repo}"


@dataclass(frozen=True)
class Issue:
    """An issue as received from a transport or an event payload."""

    number: int | None
    title: str | None = None
    body: str | None = None
    labels: tuple[Label, ...] = ()
    node_id: str | None = None
    state: str | None = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> Issue:
        number = payload.get("number")
        state = payload.get("state")
        return cls(
            number=number if isinstance(number, int) else None,
            title=payload.get("title"),
            body=payload.get("body"),
            labels=parse_labels(payload.get("labels")),
            node_id=payload.get("node_id"),
            state=state if state in ("open", "closed") else None,
        )


@dataclass(frozen=True)
class EventPayload:
    """The parts of an automation event payload the engine looks at.

    ``workflow_dispatch`` events carry ``inputs``; ``issues`` events carry
    ``action``, ``issue`` and, for labeling actions, ``label``.
    """

    action: str | None = None
    inputs: Mapping[str, str] = field(default_factory=dict)
    issue: Issue | None = None
    label: LabelRecord | None = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any] | None) -> EventPayload:
        payload = payload or {}
        raw_inputs = payload.get("inputs")
        raw_issue = payload.get("issue")
        raw_label = payload.get("label")
        action = payload.get("action")
        return cls(
            action=action if isinstance(action, str) else None,
            inputs=(
                {str(k): str(v) for k, v in raw_inputs.items()}
                if isinstance(raw_inputs, Mapping)
                else {}
            ),
            issue=Issue.from_payload(raw_issue) if isinstance(raw_issue, Mapping) else None,
            label=LabelRecord.from_payload(raw_label) if isinstance(raw_label, Mapping) else None,
        )


@dataclass(frozen=True)
class SyncContext:
    event_name: str
    payload: EventPayload = field(default_factory=EventPayload)
    labels: tuple[str, ...] | None = None


@dataclass(frozen=True)
class ProjectHandle:
    id: str
    title: str


@dataclass(frozen=True)
class FieldOption:
    name: str
    id: str


@dataclass(frozen=True)
class FieldDescriptor:
    name: str
    id: str
    options: tuple[FieldOption, ...] | None = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> FieldDescriptor:
        raw_options = payload.get("options")
        options: tuple[FieldOption, ...] | None = None
        if isinstance(raw_options, list):
            options = tuple(
                FieldOption(name=str(o["name"]), id=str(o["id"]))
                for o in raw_options
                if isinstance(o, Mapping) and "name" in o and "id" in o
            )
        return cls(name=str(payload.get("name")), id=str(payload.get("id")), options=options)


@dataclass(frozen=True)
class FieldValues:
    """A project field assignment.

    Holds names before resolution and opaque identifiers after it.
    """

    field: str
    value: str


__all__ = [
    "EventPayload",
    "FieldDescriptor",
    "FieldOption",
    "FieldValues",
    "Issue",
    "ProjectHandle",
    "Repository",
    "SyncContext",
]
