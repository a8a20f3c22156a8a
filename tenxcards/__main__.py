"""Admin CLI for the 10xCards store.

Usage:
    python -m tenxcards init-db                 Create tables
    python -m tenxcards add-user USER_ID        Register an identity-provider user
    python -m tenxcards delete-user USER_ID     Remove a user and everything they own
    python -m tenxcards cards USER_ID           List a user's flashcards
    python -m tenxcards stats USER_ID           Show a user's generation statistics

``cards`` and ``stats`` act as the given user, so they see exactly what that
user would see.
"""

import argparse
import asyncio
import logging
import sys

from sqlalchemy import func, select

from backend import database
from backend.database import caller_session
from backend.errors import StoreError
from backend.identity import delete_user, register_user
from backend.models import Base
from backend.models.flashcard import Flashcard, FlashcardSource
from backend.models.generation import Generation
from backend.models.generation_error_log import GenerationErrorLog
from backend.security.context import CallerContext
from backend.store import list_flashcards


async def ensure_db() -> None:
    """Create tables if they don't exist."""
    async with database.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def cmd_init_db(args: argparse.Namespace) -> None:
    await ensure_db()
    print("  Tables created.")


async def cmd_add_user(args: argparse.Namespace) -> None:
    await ensure_db()
    user = await register_user(args.user_id, email=args.email)
    print(f"  Registered {user.id}" + (f" <{user.email}>" if user.email else ""))


async def cmd_delete_user(args: argparse.Namespace) -> None:
    await ensure_db()
    await delete_user(args.user_id)
    print(f"  Deleted {args.user_id} and all of their rows.")


async def cmd_cards(args: argparse.Namespace) -> None:
    """Print the user's flashcards."""
    await ensure_db()
    async with caller_session(CallerContext.authenticated(args.user_id)) as db:
        cards = await list_flashcards(db)

    if not cards:
        print("  No flashcards.")
        return

    for card in cards:
        link = f" gen={card.generation_id}" if card.generation_id is not None else ""
        print(f"  [{card.id}] ({card.source}{link}) {card.front}")
        print(f"        {card.back}")


async def cmd_stats(args: argparse.Namespace) -> None:
    """Show generation and flashcard statistics for a user."""
    await ensure_db()
    async with caller_session(CallerContext.authenticated(args.user_id)) as db:
        by_source = dict(
            (
                await db.execute(
                    select(Flashcard.source, func.count(Flashcard.id)).group_by(Flashcard.source)
                )
            ).all()
        )

        gen_row = (
            await db.execute(
                select(
                    func.count(Generation.id),
                    func.coalesce(func.sum(Generation.generated_count), 0),
                    func.coalesce(func.sum(Generation.accepted_unedited_count), 0),
                    func.coalesce(func.sum(Generation.accepted_edited_count), 0),
                    func.avg(Generation.generation_duration),
                )
            )
        ).one()

        errors = (await db.execute(select(func.count(GenerationErrorLog.id)))).scalar() or 0

    generations, generated, unedited, edited, avg_duration = gen_row
    acceptance = (unedited + edited) / generated * 100 if generated else 0

    print(f"\n  10xCards statistics for {args.user_id}")
    print(f"  {'Flashcards:':<24} {sum(by_source.values())}")
    for source in FlashcardSource:
        print(f"  {'  ' + source.value + ':':<24} {by_source.get(source.value, 0)}")
    print(f"  {'Generations:':<24} {generations}")
    print(f"  {'Candidates generated:':<24} {generated}")
    print(f"  {'Accepted (unedited):':<24} {unedited}")
    print(f"  {'Accepted (edited):':<24} {edited}")
    print(f"  {'Acceptance rate:':<24} {acceptance:.0f}%")
    if avg_duration is not None:
        print(f"  {'Avg duration (ms):':<24} {avg_duration:.0f}")
    print(f"  {'Failed generations:':<24} {errors}")
    print()


def main() -> None:
    """Entry point for the 10xCards admin CLI."""
    parser = argparse.ArgumentParser(
        prog="tenxcards",
        description="10xCards store administration",
    )
    parser.add_argument("-v", "--verbose", action="store_true")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("init-db", help="Create database tables")

    add_parser = subparsers.add_parser("add-user", help="Register a user")
    add_parser.add_argument("user_id", help="Identity-provider user id")
    add_parser.add_argument("-e", "--email", default=None, help="Email address")

    delete_parser = subparsers.add_parser("delete-user", help="Delete a user and their rows")
    delete_parser.add_argument("user_id", help="Identity-provider user id")

    cards_parser = subparsers.add_parser("cards", help="List a user's flashcards")
    cards_parser.add_argument("user_id", help="Identity-provider user id")

    stats_parser = subparsers.add_parser("stats", help="Show a user's statistics")
    stats_parser.add_argument("user_id", help="Identity-provider user id")

    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)

    if not args.command:
        parser.print_help()
        return

    cmd_map = {
        "init-db": cmd_init_db,
        "add-user": cmd_add_user,
        "delete-user": cmd_delete_user,
        "cards": cmd_cards,
        "stats": cmd_stats,
    }

    try:
        asyncio.run(cmd_map[args.command](args))
    except StoreError as exc:
        print(f"  Error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
