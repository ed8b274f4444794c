"""Command-line access to the shared selection, for scripting and debugging.

    pide send FILE [START [END]]   share a file, optionally a line range
    pide show                      print the shared record
    pide clear                     remove the shared record
    pide watch                     follow changes like an assistant would
    pide serve                     run the optional HTTP channel
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from . import config
from .reader import SelectionReader
from .reference import status_text
from .store import SelectionRecord, delete_selection, read_raw
from .writer import SelectionWriter

CLI_IDE = "shell"


def _selection_path(args: argparse.Namespace) -> Path:
    return Path(args.path) if args.path else config.selection_file()


def cmd_send(args: argparse.Namespace) -> int:
    target = Path(args.file).resolve()
    start, end = args.start, args.end
    selection = None

    if start is not None:
        end = start if end is None else end
        try:
            lines = target.read_text(encoding="utf-8").splitlines()
        except (OSError, UnicodeDecodeError) as exc:
            print(f"pide: cannot read {target}: {exc}", file=sys.stderr)
            return 1
        if start < 1 or end < start or end > len(lines):
            print(f"pide: invalid line range {start}-{end} for {target} ({len(lines)} lines)", file=sys.stderr)
            return 1
        selection = "\n".join(lines[start - 1:end])

    errors: list[Exception] = []
    writer = SelectionWriter(CLI_IDE, path=_selection_path(args), on_error=errors.append)
    writer.on_focus_or_selection_changed(str(target), selection, start, end, immediate=True)
    if errors:
        print(f"pide: failed to share selection: {errors[0]}", file=sys.stderr)
        return 1

    suffix = f" lines {start}-{end}" if selection else ""
    print(f"Sent: {target}{suffix}")
    return 0


def cmd_show(args: argparse.Namespace) -> int:
    raw = read_raw(_selection_path(args))
    print("(none)" if raw is None else raw.decode("utf-8", errors="replace"))
    return 0


def cmd_clear(args: argparse.Namespace) -> int:
    try:
        delete_selection(_selection_path(args))
    except OSError as exc:
        print(f"pide: failed to clear selection: {exc}", file=sys.stderr)
        return 1
    print("Selection cleared")
    return 0


def _print_status(record: SelectionRecord | None) -> None:
    print(status_text(record) or "(no selection)", flush=True)


async def _watch(path: Path, poll_interval_ms: int | None) -> None:
    reader = SelectionReader(path, poll_interval_ms=poll_interval_ms, on_change=_print_status)
    await reader.start()
    _print_status(reader.current)
    try:
        await asyncio.Event().wait()
    finally:
        await reader.stop()


def cmd_watch(args: argparse.Namespace) -> int:
    try:
        asyncio.run(_watch(_selection_path(args), args.poll_ms))
    except KeyboardInterrupt:
        pass
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    from .run import main as run_server

    return 0 if run_server(force=args.force) else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pide", description="Share the current IDE selection with coding assistants")
    parser.add_argument("--path", help="Selection file (default: $PIDE_DIR/ide-selection.json)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("send", help="Share a file and optional line range")
    p.add_argument("file")
    p.add_argument("start", nargs="?", type=int)
    p.add_argument("end", nargs="?", type=int)
    p.set_defaults(func=cmd_send)

    p = sub.add_parser("show", help="Print the shared selection record")
    p.set_defaults(func=cmd_show)

    p = sub.add_parser("clear", help="Remove the shared selection")
    p.set_defaults(func=cmd_clear)

    p = sub.add_parser("watch", help="Print the status line whenever the selection changes")
    p.add_argument("--poll-ms", type=int, default=None, help="Poll interval in milliseconds")
    p.set_defaults(func=cmd_watch)

    p = sub.add_parser("serve", help="Run the HTTP selection channel")
    p.add_argument("--force", action="store_true", help="Serve even if PIDE_HTTP_ENABLED is unset")
    p.set_defaults(func=cmd_serve)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="[%(name)s] %(levelname)s: %(message)s",
    )
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
