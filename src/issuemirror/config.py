"""Run configuration.

Values are layered, later sources winning:

1. an optional YAML file (``issuemirror.config.yaml`` by default); string
   values starting with ``$`` are resolved from the environment
2. action inputs, read from ``INPUT_<NAME>`` environment variables the way
   the GitHub Actions runner exposes them
3. ``ISSUEMIRROR_GITHUB_TOKEN`` / ``GITHUB_TOKEN`` / ``GH_TOKEN`` as a last-resort
   source token

A ``.env`` file in the working directory is loaded first when present.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, cast

import yaml
from dotenv import load_dotenv

from .github_rest import DEFAULT_API_URL, DEFAULT_GRAPHQL_URL
from .logging import FORMATS
from .models import FieldValues

CONFIG_DEFAULT = "issuemirror.config.yaml"
TOKEN_FALLBACK_VARS = ("ISSUEMIRROR_GITHUB_TOKEN", "GITHUB_TOKEN", "GH_TOKEN")


class ConfigError(RuntimeError):
    pass


@dataclass
class MirrorConfig:
    github_token: str
    destination_org: str
    destination_token: str | None = None
    destination_repo: str | None = None
    labels: list[str] = field(default_factory=list)
    sync_labels: bool = True
    destination_via_graphql: bool = False
    # Project board propagation
    project_number: int | None = None
    project_org: str | None = None
    project_field: str | None = None
    project_value: str | None = None
    # Logging configuration
    logging_format: str | None = None
    logging_level: str = "INFO"
    # API endpoints (GitHub Enterprise Server)
    api_url: str = DEFAULT_API_URL
    graphql_url: str = DEFAULT_GRAPHQL_URL

    @property
    def project_field_values(self) -> FieldValues | None:
        if self.project_field and self.project_value:
            return FieldValues(field=self.project_field, value=self.project_value)
        return None


def _input_key(name: str) -> str:
    return "INPUT_" + name.replace(" ", "_").upper()


def get_input(
    name: str, *, required: bool = False, environ: Mapping[str, str] | None = None
) -> str:
    """Read an action input; missing inputs are returned as ``''``."""
    env = os.environ if environ is None else environ
    value = env.get(_input_key(name), "").strip()
    if required and not value:
        raise ConfigError(f"Input required and not supplied: {name}")
    return value


def get_multiline_input(
    name: str, *, required: bool = False, environ: Mapping[str, str] | None = None
) -> list[str]:
    raw = get_input(name, required=required, environ=environ)
    return [line.strip() for line in raw.splitlines() if line.strip()]


def _resolve_env_var(value: Any, environ: Mapping[str, str]) -> Any:
    """Resolve environment variable if value starts with $; unset -> None."""
    if isinstance(value, str) and value.startswith("$"):
        return environ.get(value[1:])
    return value


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() == "true"


def _as_int(value: Any, name: str) -> int | None:
    if value in (None, ""):
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{name} must be an integer, got {value!r}") from exc


def _as_labels(value: Any) -> list[str]:
    """Accept a YAML list or a (possibly multiline) string of label names."""
    if value is None:
        return []
    if isinstance(value, str):
        return [line.strip() for line in value.splitlines() if line.strip()]
    if isinstance(value, list):
        return [str(label).strip() for label in value if str(label).strip()]
    raise ConfigError(f"labels must be a string or a list, got {type(value).__name__}")


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid configuration file {path}: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigError(f"Configuration file {path} must contain a mapping")
    return cast(dict[str, Any], raw)


def load_environment(dotenv_path: str | Path | None = None) -> bool:
    """Load a ``.env`` file into ``os.environ`` without overriding set values."""
    env_file = Path(dotenv_path or ".env")
    if not env_file.exists():
        return False
    return bool(load_dotenv(env_file, override=False))


def load_config(
    path: str | Path | None = None, *, environ: Mapping[str, str] | None = None
) -> MirrorConfig:
    if environ is None:
        load_environment()
        environ = os.environ

    raw: dict[str, Any] = {}
    if path is not None:
        p = Path(path)
        if not p.exists():
            raise ConfigError(f"Configuration file not found: {p}")
        raw = _read_yaml(p)
    elif Path(CONFIG_DEFAULT).exists():
        raw = _read_yaml(Path(CONFIG_DEFAULT))

    src = cast(dict[str, Any], raw.get("source", {}) or {})
    dest = cast(dict[str, Any], raw.get("destination", {}) or {})
    project = cast(dict[str, Any], raw.get("project", {}) or {})
    logging_cfg = cast(dict[str, Any], raw.get("logging", {}) or {})
    github = cast(dict[str, Any], raw.get("github", {}) or {})

    def pick(input_name: str, file_value: Any) -> Any:
        from_input = get_input(input_name, environ=environ)
        if from_input:
            return from_input
        return _resolve_env_var(file_value, environ)

    token = pick("GITHUB_TOKEN", src.get("token"))
    if not token:
        token = next((environ[v] for v in TOKEN_FALLBACK_VARS if environ.get(v)), None)
    if not token:
        raise ConfigError("Input required and not supplied: GITHUB_TOKEN")

    destination_org = pick("DESTINATION_ORG", dest.get("org"))
    if not destination_org:
        raise ConfigError("Input required and not supplied: DESTINATION_ORG")

    labels = get_multiline_input("labels", environ=environ) or _as_labels(raw.get("labels"))

    sync_labels_disabled = get_input("SYNC_LABELS_DISABLED", environ=environ)
    if sync_labels_disabled:
        sync_labels = not _as_bool(sync_labels_disabled)
    else:
        sync_labels = _as_bool(raw.get("sync_labels", True))

    project_field = pick("PROJECT_FIELD", project.get("field")) or None
    project_value = pick("PROJECT_VALUE", project.get("value")) or None
    if bool(project_field) != bool(project_value):
        raise ConfigError("PROJECT_FIELD and PROJECT_VALUE must be provided together")

    logging_format = logging_cfg.get("format")
    if logging_format is not None and logging_format not in FORMATS:
        raise ConfigError(f"logging.format must be one of {FORMATS}, got {logging_format!r}")

    return MirrorConfig(
        github_token=str(token),
        destination_org=str(destination_org),
        destination_token=pick("DESTINATION_TOKEN", dest.get("token")) or None,
        destination_repo=pick("DESTINATION_REPO", dest.get("repo")) or None,
        labels=labels,
        sync_labels=sync_labels,
        destination_via_graphql=_as_bool(pick("DESTINATION_GRAPHQL", dest.get("graphql", False))),
        project_number=_as_int(pick("PROJECT_NUMBER", project.get("number")), "PROJECT_NUMBER"),
        project_org=pick("PROJECT_ORG", project.get("org")) or None,
        project_field=project_field,
        project_value=project_value,
        logging_format=logging_format,
        logging_level=str(logging_cfg.get("level", "INFO")),
        api_url=str(github.get("api_url") or DEFAULT_API_URL),
        graphql_url=str(github.get("graphql_url") or DEFAULT_GRAPHQL_URL),
    )


__all__ = [
    "CONFIG_DEFAULT",
    "TOKEN_FALLBACK_VARS",
    "ConfigError",
    "MirrorConfig",
    "get_input",
    "get_multiline_input",
    "load_config",
    "load_environment",
]
