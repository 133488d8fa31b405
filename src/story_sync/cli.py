#!/usr/bin/env python
"""
Story Sync CLI - inspect and reconcile the local story cache.

Usage:
    python -m story_sync.cli status             # Reachability and local backlog
    python -m story_sync.cli sync               # Push pending records
    python -m story_sync.cli migrate            # Import the legacy local table
    python -m story_sync.cli stories --recent 5 # List stories
"""

import argparse
import asyncio
import logging
import sys

from .config import SyncConfig
from .errors import LocalCorruptionError
from .logging_utils import configure_safe_logging
from .session import SyncSession

logger = logging.getLogger(__name__)


def build_session(config: SyncConfig) -> SyncSession:
    return SyncSession.from_config(config)


def cmd_status(session: SyncSession, args):
    """Show reachability and pending counts."""
    status = session.status()
    print(f"\nRemote store:      {'reachable' if status['reachable'] else 'UNREACHABLE'}")
    print(f"Pending stories:   {status['pending_stories']}")
    print(f"Pending profiles:  {status['pending_profiles']}")
    print(f"Pending deletes:   {status['pending_deletes']}")
    print(f"Drafts:            {status['drafts']}")
    print()


def cmd_sync(session: SyncSession, args):
    """Run the deferred migration and push pending records."""
    report = asyncio.run(session.sync())
    if not report.reachable:
        print("Remote store unreachable, nothing synced.")
        return 1

    print(f"\nPushed:  {report.pushed}")
    print(f"Deleted: {report.deleted}")
    print(f"Failed:  {report.failed}")
    for local_id, server_id in report.id_changes.items():
        print(f"  {local_id} -> {server_id}")
    for error in report.errors:
        print(f"  ! {error}")
    print()
    return 1 if report.failed else 0


def cmd_migrate(session: SyncSession, args):
    """Copy legacy local stories into the remote store."""
    if not session.connectivity.is_reachable():
        print("Remote store unreachable, migration deferred.")
        return 1

    report = asyncio.run(session.migration.run())
    print(f"\nMigrated: {report.migrated}")
    print(f"Skipped:  {report.skipped}")
    print(f"Failed:   {report.failed}")
    for error in report.errors:
        print(f"  ! {error}")
    print()
    return 1 if report.failed else 0


def cmd_stories(session: SyncSession, args):
    """List stories: recent, popular, or matching a search."""
    if args.search is not None:
        stories = asyncio.run(session.stories.search(args.search))
        heading = f"Stories matching '{args.search}'"
    elif args.popular is not None:
        stories = asyncio.run(session.stories.get_popular(args.popular))
        heading = f"Top {args.popular} stories by length"
    else:
        stories = asyncio.run(session.stories.get_recent(args.recent))
        heading = f"{args.recent} most recent stories"

    if not stories:
        print("No stories found.")
        return 0

    print(f"\n# {heading}\n")
    print(f"{'Title':<40} {'Author':<16} {'Chars':>6} {'Likes':>5}  Sync")
    print("-" * 80)
    for story in stories:
        sync_badge = "pending" if story.pending_sync else "ok"
        print(
            f"{story.title[:40]:<40} {story.author[:16]:<16} "
            f"{story.character_count:>6} {len(story.likes):>5}  {sync_badge}"
        )
    print()
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Story Sync CLI - inspect and reconcile the local story cache",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m story_sync.cli status
  python -m story_sync.cli sync
  python -m story_sync.cli stories --popular 10
  python -m story_sync.cli stories --search 密室
        """,
    )
    subparsers = parser.add_subparsers(dest="command", help="Command")

    p_status = subparsers.add_parser("status", help="Show reachability and pending counts")
    p_status.set_defaults(func=cmd_status)

    p_sync = subparsers.add_parser("sync", help="Push pending local records")
    p_sync.set_defaults(func=cmd_sync)

    p_migrate = subparsers.add_parser("migrate", help="Import the legacy local story table")
    p_migrate.set_defaults(func=cmd_migrate)

    p_stories = subparsers.add_parser("stories", help="List stories")
    view = p_stories.add_mutually_exclusive_group()
    view.add_argument("--recent", type=int, default=10, help="Most recent N stories (default)")
    view.add_argument("--popular", type=int, help="Top N stories by character count")
    view.add_argument("--search", help="Case-insensitive text search")
    p_stories.set_defaults(func=cmd_stories)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    config = SyncConfig.from_env()
    configure_safe_logging(config.log_level)
    session = build_session(config)

    try:
        return args.func(session, args) or 0
    except LocalCorruptionError as e:
        logger.error(str(e))
        print(f"Local cache is unreadable: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
