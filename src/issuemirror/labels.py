"""Label representation and case-insensitive matching.

GitHub hands labels over in two shapes: plain names (``"bug"``, as accepted
by the REST create endpoint) and label records (``{"id": 1, "name": "bug"}``,
as found in webhook payloads and issue listings). Both are modelled
explicitly and flattened with :func:`normalize_labels` before comparison.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Union


@dataclass(frozen=True)
class LabelName:
    name: str


@dataclass(frozen=True)
class LabelRecord:
    name: str | None = None
    id: int | None = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> LabelRecord:
        name = payload.get("name")
        label_id = payload.get("id")
        return cls(
            name=name if isinstance(name, str) else None,
            id=label_id if isinstance(label_id, int) else None,
        )


Label = Union[LabelName, LabelRecord]


def parse_labels(raw: Iterable[Any] | None) -> tuple[Label, ...]:
    """Build labels from a raw payload list, ignoring unknown entry shapes."""
    if not raw:
        return ()
    out: list[Label] = []
    for entry in raw:
        if isinstance(entry, str):
            out.append(LabelName(entry))
        elif isinstance(entry, Mapping):
            out.append(LabelRecord.from_payload(entry))
    return tuple(out)


def normalize_labels(labels: Sequence[Label] | None) -> list[str]:
    """Flatten labels into their names, preserving order.

    Records without a name are dropped.
    """
    if not labels:
        return []
    names: list[str] = []
    for label in labels:
        if isinstance(label, LabelName):
            names.append(label.name)
        elif isinstance(label, LabelRecord) and label.name:
            names.append(label.name)
    return names


def _lowered(names: Iterable[str]) -> set[str]:
    return {name.lower() for name in names}


def any_match(a: Iterable[str], b: Iterable[str]) -> bool:
    """True when the two name collections share a label, ignoring case."""
    return not _lowered(a).isdisjoint(_lowered(b))


__all__ = [
    "Label",
    "LabelName",
    "LabelRecord",
    "any_match",
    "normalize_labels",
    "parse_labels",
]
