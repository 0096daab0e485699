"""issuemirror - mirror GitHub issues into another repository.

High-level public API:

import asyncio
from issuemirror import Repository, build_synchronizer, load_config, load_event

cfg = load_config()
synchronizer = build_synchronizer(cfg, Repository.from_slug("acme/widgets"))
asyncio.run(synchronizer.synchronize_issue(load_event(labels=cfg.labels)))

The ``issuemirror`` CLI wraps exactly this flow for use inside a workflow.
"""

from __future__ import annotations

__version__ = "0.2.0"

from .config import MirrorConfig, load_config  # noqa: E402
from .errors import (  # noqa: E402
    FieldHasNoOptions,
    FieldNotFound,
    InvalidPayload,
    MirrorError,
    MissingLabelOnEvent,
    OptionNotFound,
    TransportFailure,
    UnsupportedEvent,
)
from .labels import LabelName, LabelRecord, any_match, normalize_labels  # noqa: E402
from .models import EventPayload, Issue, Repository, SyncContext  # noqa: E402
from .project import ProjectFieldResolver  # noqa: E402
from .runtime import build_synchronizer, load_event  # noqa: E402
from .synchronizer import Synchronizer  # noqa: E402

__all__ = [
    "EventPayload",
    "FieldHasNoOptions",
    "FieldNotFound",
    "InvalidPayload",
    "Issue",
    "LabelName",
    "LabelRecord",
    "MirrorConfig",
    "MirrorError",
    "MissingLabelOnEvent",
    "OptionNotFound",
    "ProjectFieldResolver",
    "Repository",
    "SyncContext",
    "Synchronizer",
    "TransportFailure",
    "UnsupportedEvent",
    "__version__",
    "any_match",
    "build_synchronizer",
    "load_config",
    "load_event",
    "normalize_labels",
]
