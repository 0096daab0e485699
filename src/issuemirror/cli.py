"""issuemirror CLI.

Subcommands:
  sync           -> handle one automation event (GITHUB_EVENT_NAME / GITHUB_EVENT_PATH)
  resolve-field  -> print the project, field and option ids for a field/value pair
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from typing import Any

from issuemirror.config import (
    CONFIG_DEFAULT,
    TOKEN_FALLBACK_VARS,
    ConfigError,
    MirrorConfig,
    load_config,
)
from issuemirror.errors import MirrorError, redact
from issuemirror.github_projects import ProjectsClient
from issuemirror.github_rest import DEFAULT_GRAPHQL_URL, GitHubRestClient
from issuemirror.logging import FORMATS, StructuredLogger, configure_logging
from issuemirror.models import FieldValues
from issuemirror.project import ProjectFieldResolver
from issuemirror.runtime import build_synchronizer, load_event, resolve_source_repository, run

_MAX_HELP_WIDTH = 100


class _HelpFormatter(argparse.HelpFormatter):
    def __init__(self, prog: str) -> None:
        super().__init__(prog, max_help_position=30, width=_MAX_HELP_WIDTH)


class _FormatterArgumentParser(argparse.ArgumentParser):
    def __init__(self, *args: Any, **kwargs: Any) -> None:
        kwargs.setdefault("formatter_class", _HelpFormatter)
        super().__init__(*args, **kwargs)


def _build_parser() -> argparse.ArgumentParser:
    p = _FormatterArgumentParser(
        prog="issuemirror", description="Mirror GitHub issues into another repository"
    )
    p.add_argument("--log-format", choices=FORMATS, help="Output format (default: actions on runners, else text)")
    p.add_argument("--log-level", help="DEBUG, INFO, NOTICE, WARNING or ERROR")
    p.add_argument(
        "--quiet",
        action="store_true",
        help="Only log warnings and errors (env: ISSUEMIRROR_QUIET=1)",
    )
    sub = p.add_subparsers(
        dest="cmd",
        required=True,
        parser_class=_FormatterArgumentParser,
        metavar="<command>",
    )

    ps = sub.add_parser("sync", help="Mirror issues for one automation event")
    ps.add_argument("--config", help=f"YAML configuration (default: {CONFIG_DEFAULT} if present)")
    ps.add_argument("--event-name", help="Override GITHUB_EVENT_NAME")
    ps.add_argument("--event-path", help="Override GITHUB_EVENT_PATH (JSON payload)")
    ps.add_argument("--repo", help="Override source repository (owner/repo)")

    pr = sub.add_parser("resolve-field", help="Resolve a project field/value to GraphQL ids")
    pr.add_argument("--org", required=True, help="Organization owning the project")
    pr.add_argument("--project", required=True, type=int, help="Project number")
    pr.add_argument("--field", required=True, help="Field name (case-insensitive)")
    pr.add_argument("--value", required=True, help="Option name (case-insensitive)")
    pr.add_argument("--token", help="GitHub token (default: ISSUEMIRROR_GITHUB_TOKEN/GITHUB_TOKEN/GH_TOKEN)")
    pr.add_argument("--graphql-url", default=DEFAULT_GRAPHQL_URL)
    return p


def _resolve_level(args: argparse.Namespace, cfg: MirrorConfig | None = None) -> str:
    if getattr(args, "quiet", False):
        return "WARNING"
    if args.log_level:
        return str(args.log_level)
    return cfg.logging_level if cfg else "INFO"


def _resolve_token(args: argparse.Namespace) -> str | None:
    token_arg = getattr(args, "token", None)
    if isinstance(token_arg, str) and token_arg.strip():
        return token_arg.strip()
    for name in TOKEN_FALLBACK_VARS:
        token = os.environ.get(name)
        if token and token.strip():
            return token.strip()
    return None


def _cmd_sync(args: argparse.Namespace, logger: StructuredLogger) -> int:
    try:
        cfg = load_config(args.config)
        source_repo = resolve_source_repository(args.repo)
    except ConfigError as exc:
        logger.error(redact(str(exc)))
        return 1
    logger = configure_logging(
        fmt=args.log_format or cfg.logging_format, level=_resolve_level(args, cfg)
    )
    try:
        context = load_event(args.event_name, args.event_path, labels=cfg.labels)
    except ConfigError as exc:
        logger.error(str(exc))
        return 1
    synchronizer = build_synchronizer(cfg, source_repo, logger)
    return run(synchronizer, context, logger)


def _cmd_resolve_field(args: argparse.Namespace, logger: StructuredLogger) -> int:
    token = _resolve_token(args)
    if not token:
        print("[resolve-field] GitHub token required (--token or GITHUB_TOKEN)", file=sys.stderr)
        return 1
    transport = ProjectsClient(
        GitHubRestClient(token=token, graphql_url=args.graphql_url), logger
    )
    resolver = ProjectFieldResolver(transport, args.org, args.project, logger)
    try:
        project = resolver.fetch_project()
        resolved = resolver.resolve_field_values(
            project, FieldValues(field=args.field, value=args.value)
        )
    except MirrorError as exc:
        print(f"[resolve-field] {redact(str(exc))}", file=sys.stderr)
        return 1
    print(
        json.dumps(
            {
                "project": {"id": project.id, "title": project.title},
                "field": resolved.field,
                "value": resolved.value,
            },
            indent=2,
        )
    )
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if not args.quiet and os.environ.get("ISSUEMIRROR_QUIET") == "1":
        args.quiet = True
    logger = configure_logging(fmt=args.log_format, level=_resolve_level(args))
    handlers = {
        "sync": lambda: _cmd_sync(args, logger),
        "resolve-field": lambda: _cmd_resolve_field(args, logger),
    }
    handler = handlers.get(args.cmd)
    if handler is None:  # pragma: no cover - argparse enforces valid choices
        parser.print_help()
        return 1
    return handler()


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
