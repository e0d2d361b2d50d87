#!/usr/bin/env python3
"""
shellmark - bookmarks for your shell

Register directories and files, then jump to them through a fuzzy picker.
The picker cannot change the calling shell's directory itself, so it prints
a command for the shell wrapper (see `shellmark plug`) to evaluate.

Only emitted commands and requested listings go to stdout; messages,
logging and the picker UI go to stderr.
"""
import sys
import json
import argparse
import logging
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from shellmark import __version__
from shellmark.browse import BrowseSession, run_browser
from shellmark.config import ShellmarkConfig, init_config
from shellmark.emitter import DIALECTS, emit, get_dialect, plug
from shellmark.errors import ShellmarkError, ValidationError
from shellmark.models import Bookmark
from shellmark.store import Store
from shellmark.utils import friendly_path, normalize_path, resolve_destination

logger = logging.getLogger(__name__)


console = Console(stderr=True)
stdout_console = Console()


def setup_logging(level: str, verbosity: int = 0) -> None:
    """Send log records to stderr; -v and -vv lower the configured level."""
    if verbosity >= 2:
        level = "DEBUG"
    elif verbosity == 1:
        level = "INFO"

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.WARNING),
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )


def format_bookmark(bookmark: Bookmark, format: str = "plain") -> str:
    """Format a bookmark as one line of output."""
    if format == "json":
        return json.dumps(bookmark.to_dict(), ensure_ascii=False)
    if bookmark.label:
        return f"{bookmark.label}\t{bookmark.path}"
    return bookmark.path


def output_bookmarks(bookmarks: List[Bookmark], format: str = "plain"):
    """Output bookmarks in the specified format."""
    if format == "table":
        table = Table(title="Bookmarks")
        table.add_column("Name", style="green")
        table.add_column("Path", style="blue")
        table.add_column("Score", style="magenta", justify="right")
        table.add_column("Last used", style="cyan")

        for bookmark in bookmarks:
            last_used = bookmark.last_used_at.strftime("%Y-%m-%d %H:%M") if bookmark.last_used_at else "never"
            table.add_row(
                escape(bookmark.name),
                escape(friendly_path(bookmark.path)),
                str(bookmark.score),
                last_used,
            )

        stdout_console.print(table)
    elif format == "json":
        print(json.dumps([b.to_dict() for b in bookmarks], indent=2, ensure_ascii=False))
    else:
        for bookmark in bookmarks:
            print(format_bookmark(bookmark, format))


def cmd_add(args, config: ShellmarkConfig):
    """Add a bookmark."""
    dest = resolve_destination(args.dest)

    with Store.transaction(config.get_store_path()) as store:
        bookmark = store.add(dest, label=args.label, force=args.force)

    logger.info(f"Added a bookmark {bookmark.name} pointing at {bookmark.path}")
    if not args.quiet:
        console.print(
            f"[green]Added bookmark {escape(bookmark.name)} → {escape(friendly_path(bookmark.path))}[/green]"
        )


def cmd_remove(args, config: ShellmarkConfig):
    """Remove a bookmark; a missing bookmark is not an error."""
    if not args.path.strip():
        console.print("[yellow]Bookmark not found: empty path[/yellow]")
        return

    store = Store.load(config.get_store_path())
    path = normalize_path(args.path)

    if store.remove(path):
        store.save()
        if not args.quiet:
            console.print(f"[green]Removed bookmark {escape(friendly_path(path))}[/green]")
        return

    console.print(f"[yellow]Bookmark not found: {escape(friendly_path(path))}[/yellow]")
    near = store.find_by_prefix(path)
    if near and not args.quiet:
        console.print("Bookmarks under that path:")
        for bookmark in near:
            console.print(f"  {escape(friendly_path(bookmark.path))}")


def cmd_list(args, config: ShellmarkConfig):
    """List bookmarks in ranking order."""
    store = Store.load(config.get_store_path())
    output_bookmarks(store.list(), args.format)


def cmd_browse(args, config: ShellmarkConfig):
    """Pick a bookmark interactively and print the command to go there."""
    store = Store.load(config.get_store_path())
    session = BrowseSession(store, editor=config.editor)

    outcome = run_browser(session)

    output = emit(outcome, args.out)
    if output:
        sys.stdout.write(output + "\n")
        sys.stdout.flush()


def cmd_plug(args, config: ShellmarkConfig):
    """Print the shell integration snippet."""
    dialect = args.plug_out or args.out
    if dialect == "plain":
        raise ValidationError(
            "Choose a shell with --out: " + ", ".join(d for d in DIALECTS if d != "plain")
        )
    sys.stdout.write(plug(dialect, args.name or config.alias))


def cmd_diag(args, config: ShellmarkConfig):
    """Show where shellmark keeps its data."""
    store_path = config.get_store_path()
    store = Store.load(store_path)

    print(f"Version: {__version__}")
    print(f"Config file: {config.config_file or '(none)'}")
    print(f"Store file: {store_path}")
    print(f"Store exists: {'yes' if store_path.exists() else 'no'}")
    print(f"Store version: {store.version}")
    print(f"Bookmark count: {len(store)}")
    print(f"Editor: {config.editor or '(not set)'}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="shellmark",
        description="shellmark - cross-platform bookmarks for your shell",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  shellmark add ~/src/project --label proj
  shellmark list
  shellmark remove ~/src/project
  shellmark --out posix            # browse and print a cd command
  shellmark plug --out posix --name s >> ~/.bashrc

Configuration:
  Config file: ~/.config/shellmark/config.toml
  Environment: SHELLMARK_STORE, SHELLMARK_OUT, SHELLMARK_ALIAS
        """
    )

    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-o", "--out", choices=list(DIALECTS),
                        help="Output selection as plain data or as an evalable command for a shell")
    parser.add_argument("--store", help="Bookmarks file (default: per-user data directory)")
    parser.add_argument("--config", help="Config file path")
    parser.add_argument("-q", "--quiet", action="store_true", help="Minimal output")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="More logging (-vv for debug)")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    add_parser = subparsers.add_parser("add", aliases=["a"], help="Add a bookmark")
    add_parser.add_argument("dest", nargs="?", help="Destination file or directory (default: current directory)")
    add_parser.add_argument("-l", "--label", "-n", "--name", dest="label", help="Short name for the bookmark")
    add_parser.add_argument("-f", "--force", action="store_true",
                            help="Replace the existing bookmark for the same path")
    add_parser.set_defaults(func=cmd_add)

    remove_parser = subparsers.add_parser("remove", aliases=["rm"], help="Remove a bookmark")
    remove_parser.add_argument("path", help="Bookmarked path")
    remove_parser.set_defaults(func=cmd_remove)

    list_parser = subparsers.add_parser("list", aliases=["ls"], help="List bookmarks")
    list_parser.add_argument("--format", choices=["plain", "table", "json"], default="plain",
                             help="Output format (default: plain)")
    list_parser.set_defaults(func=cmd_list)

    browse_parser = subparsers.add_parser("browse", aliases=["b"],
                                          help="Interactively find and select a bookmark (default)")
    browse_parser.set_defaults(func=cmd_browse)

    plug_parser = subparsers.add_parser("plug", help="Print shell integration for --out")
    plug_parser.add_argument("--name", help="Name of the shell function (default: s)")
    plug_parser.add_argument("-o", "--out", dest="plug_out", choices=list(DIALECTS), help="Target shell")
    plug_parser.set_defaults(func=cmd_plug)

    diag_parser = subparsers.add_parser("diag", help="Show configuration and store diagnostics")
    diag_parser.set_defaults(func=cmd_diag)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = init_config(
            config_file=Path(args.config) if args.config else None,
            store=args.store,
        )
    except (OSError, ValueError) as e:
        console.print(f"[red]Error: Couldn't load configuration: {escape(str(e))}[/red]")
        return 1

    setup_logging(config.log_level, args.verbose)

    if not config.color_output:
        console.no_color = True
        stdout_console.no_color = True

    func = getattr(args, "func", cmd_browse)

    try:
        if args.out is None:
            args.out = get_dialect(config.out).name
        func(args, config)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        return 130
    except ShellmarkError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        return 1
    except Exception as e:
        logger.debug("Unexpected error", exc_info=True)
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
