"""Command-line entry point for the release tracker."""

from __future__ import annotations

import argparse
from collections.abc import Sequence

from .commands import cmd_add, cmd_config, cmd_list, cmd_remove, cmd_rollback, cmd_update
from .settings import SettingError, cmd_releases, cmd_set, cmd_tidy

DESCRIPTION = (
    "Track is a powerful CLI tool to automatically track GitHub repository releases,\n"
    "download compatible binaries, and manage updates across different platforms.\n\n"
    "You can edit the config file directly with 'track config'."
)


def _run_add(ns: argparse.Namespace) -> None:
    cmd_add(ns.repo, ns.token, ns.prerelease, ns.filter, ns.name)


def _run_config(ns: argparse.Namespace) -> None:
    cmd_config()


def _run_list(ns: argparse.Namespace) -> None:
    cmd_list()


def _run_releases(ns: argparse.Namespace) -> None:
    cmd_releases(ns.number, ns.limit)


def _run_remove(ns: argparse.Namespace) -> None:
    cmd_remove(ns.number)


def _run_rollback(ns: argparse.Namespace) -> None:
    cmd_rollback(ns.number, ns.version_tag)


def _run_set(ns: argparse.Namespace) -> None:
    cmd_set(ns.args)


def _run_tidy(ns: argparse.Namespace) -> None:
    cmd_tidy()


def _run_update(ns: argparse.Namespace) -> None:
    cmd_update(ns.numbers, ns.force)


def build_parser() -> argparse.ArgumentParser:
    """Return the parser for the ``track`` command and its subcommands."""
    parser = argparse.ArgumentParser(
        prog="track",
        description=DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    sub = parser.add_subparsers(dest="command", metavar="<command>")

    add = sub.add_parser("add", help="Add a GitHub repository to track")
    add.add_argument("repo", metavar="owner/repo")
    add.add_argument("--prerelease", action="store_true",
                     help="Include pre-releases when checking for updates")
    add.add_argument("--token", default="", help="GitHub token for private repositories")
    add.add_argument("--filter", default="",
                     help="Regex to prefer a specific asset (e.g., '.*musl.*')")
    add.add_argument("--name", default="", help="Set a custom binary name for the executable")
    add.set_defaults(handler=_run_add)

    config = sub.add_parser("config", aliases=["cfg"],
                            help="Open the track configuration file for editing")
    config.set_defaults(handler=_run_config)

    listing = sub.add_parser("list", aliases=["ls", "status"],
                             help="List all tracked repositories")
    listing.set_defaults(handler=_run_list)

    releases = sub.add_parser("releases",
                              help="Show version history and recent releases for a repository")
    releases.add_argument("number")
    releases.add_argument("-l", "--limit", type=int, default=10,
                          help="Number of recent releases to show from GitHub")
    releases.set_defaults(handler=_run_releases)

    remove = sub.add_parser("remove", aliases=["rm"], help="Remove a repository from tracking")
    remove.add_argument("number")
    remove.set_defaults(handler=_run_remove)

    rollback = sub.add_parser("rollback", help="Roll back a repository to a specific version")
    rollback.add_argument("number")
    rollback.add_argument("version_tag")
    rollback.set_defaults(handler=_run_rollback)

    setting = sub.add_parser(
        "set",
        help="Set or toggle a config field for a tracked repository or global setting",
    )
    setting.add_argument("args", nargs="*", metavar="arg",
                         help="<repo#|repo> <field> <value> | debug <true|false>")
    setting.set_defaults(handler=_run_set)

    tidy = sub.add_parser(
        "tidy",
        help="Delete all previous version folders for all tracked repositories (keep only current)",
    )
    tidy.set_defaults(handler=_run_tidy)

    update = sub.add_parser(
        "update",
        help="Update tracked repositories to their latest versions (and track itself)",
    )
    update.add_argument("numbers", nargs="*", metavar="number")
    update.add_argument("-f", "--force", action="store_true",
                        help="Force update even if versions match")
    update.set_defaults(handler=_run_update)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the command line and return the exit status."""
    parser = build_parser()
    ns = parser.parse_args(argv)
    handler = getattr(ns, "handler", None)
    if handler is None:
        parser.print_help()
        return 0
    try:
        handler(ns)
    except SettingError as exc:
        print(f"Error: {exc}")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())