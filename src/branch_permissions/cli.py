from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Sequence

from branch_permissions.api.errors import ApiError
from branch_permissions.bootstrap import build_services
from branch_permissions.config import Settings, SettingsManager
from branch_permissions.data import ObjectType
from branch_permissions.services import ImportResult, ReconcileResult, ServiceRegistry
from branch_permissions.utils import (
    LoggingOptions,
    ProgressSnapshot,
    configure_logging,
    get_logger,
)
from branch_permissions.utils.errors import describe_exception


OBJECT_TYPE_HELP = "Content kind, e.g. " + ", ".join(item.value for item in ObjectType) + "."


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value!r}") from None
    if number < 1:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value!r}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="branch-permissions",
        description="Manage which branches a content object applies to.",
    )
    parser.add_argument("--base-url", help="Override the API base URL.")
    parser.add_argument("--debug", action="store_true", help="Verbose console logging.")
    parser.add_argument(
        "--no-log-file", action="store_true", help="Do not write the rotating log file."
    )
    sub = parser.add_subparsers(dest="command", required=True)

    show = sub.add_parser("show", help="List the branches an object applies to.")
    show.add_argument("object_type", help=OBJECT_TYPE_HELP)
    show.add_argument("object_id", type=int)

    resolve = sub.add_parser("import", help="Resolve a text file of branch ids/names.")
    resolve.add_argument("file", type=Path)

    sync = sub.add_parser("sync", help="Make an object's permissions match a text file.")
    sync.add_argument("object_type", help=OBJECT_TYPE_HELP)
    sync.add_argument("object_id", type=int)
    sync.add_argument("file", type=Path)
    sync.add_argument("--batch-size", type=_positive_int, default=None)
    sync.add_argument(
        "--append",
        action="store_true",
        help="Add the imported branches to the current permissions instead of replacing them.",
    )
    sync.add_argument(
        "--replace",
        action="store_true",
        help="Use the server-side batch replace endpoint instead of chunked reconciliation.",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    settings = SettingsManager().load()
    if args.base_url:
        settings.api_base_url = args.base_url
    configure_logging(
        LoggingOptions(
            level=settings.log_level,  # type: ignore[arg-type]
            debug=args.debug,
            file_logging=not args.no_log_file,
        )
    )
    raise SystemExit(asyncio.run(_run(args, settings)))


async def _run(args: argparse.Namespace, settings: Settings) -> int:
    logger = get_logger(__name__)
    services = build_services(settings)
    try:
        if args.command == "show":
            return await _show(services, args.object_type, args.object_id)
        if args.command == "import":
            return await _import(services, args.file)
        return await _sync(services, args)
    except ApiError as exc:
        descriptor = describe_exception(exc)
        logger.error("Command failed", command=args.command, error=str(exc))
        print(f"{descriptor.headline}\n  {descriptor.detail}", file=sys.stderr)
        if descriptor.suggestion:
            print(f"  {descriptor.suggestion}", file=sys.stderr)
        return 2
    finally:
        await services.close()


async def _show(services: ServiceRegistry, object_type: str, object_id: int) -> int:
    session = services.session(object_type, object_id)
    selection = await session.open()
    if not len(selection):
        print(f"{object_type} {object_id} has no branch restrictions (applies to all).")
        return 0
    for branch in selection:
        print(branch)
    return 0


async def _import(services: ServiceRegistry, path: Path) -> int:
    branches = await services.directory.load()
    result = services.branch_import.parse_file(path, branches)
    _print_import(result)
    return 1 if result.failed else 0


async def _sync(services: ServiceRegistry, args: argparse.Namespace) -> int:
    session = services.session(args.object_type, args.object_id)
    await session.open()
    if not args.append:
        session.selection.clear()

    result = session.import_file(args.file)
    _print_import(result)
    if result.failed:
        return 1
    session.apply_import()

    if args.replace:
        await services.permissions.replace_all(
            args.object_type, args.object_id, session.selection.ids()
        )
        print(f"Replaced permissions with {len(session.selection)} branch(es).")
        return 0

    session.progress.bind(_print_progress)
    outcome = await session.save(batch_size=args.batch_size)
    _print_outcome(outcome)
    return 0 if outcome.succeeded else 1


def _print_import(result: ImportResult) -> None:
    print(f"Matched by id:   {len(result.matched_by_id)}")
    print(f"Matched by name: {len(result.matched_by_name)}")
    for branch in result.matched_by_name:
        print(f"  ~ {branch}")
    print(f"Not found:       {len(result.unmatched)}")
    for token in result.unmatched:
        print(f"  ! {token}")
    for line in result.diagnostics:
        print(f"Error: {line}", file=sys.stderr)


def _print_progress(snapshot: ProgressSnapshot) -> None:
    if snapshot.visible:
        print(snapshot.label)


def _print_outcome(result: ReconcileResult) -> None:
    print(f"Deleted {len(result.deleted)}, created {len(result.created)}.")
    if result.stale:
        print(f"Skipped {len(result.stale)} permission(s) for unknown branches.")
    if result.failures:
        print(f"{result.failure_count} operation(s) failed; run sync again to retry:")
        for failure in result.failures:
            print(f"  ! {failure.message}")


__all__ = ["build_parser", "main"]
