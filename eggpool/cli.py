"""
Egg pool command line.

Usage:
    eggpool gallery
    eggpool submit --submitter Ash --pokemon pikachu --nickname Sparky \\
        --move Thunderbolt --move "Quick Attack" --message "Take care of him!"
    eggpool lookup "mr mime"
    eggpool reference moves --query whi
    eggpool --log-format json gallery

The shared document location comes from EGGPOOL_GITHUB_* environment
variables (see utils/config.py).
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import textwrap
from typing import Optional, Sequence

from eggpool.gallery import load_gallery
from eggpool.lookup import LookupStatus
from eggpool.records import MAX_MOVES
from eggpool.reference import LIST_KINDS
from eggpool.search_select import filter_candidates
from eggpool.services import build_coordinator, build_reference, build_store
from eggpool.submission import SubmissionForm, SubmissionWorkflow
from utils.config import AppConfig, ReferenceConfig, StoreConfig
from utils.errors import EggPoolError, NotFoundError
from utils.logging import configure_logging
from utils.strings import capitalize

logger = logging.getLogger(__name__)


# ── Commands ──────────────────────────────────────────────────────────────────

async def cmd_gallery(args: argparse.Namespace) -> int:
    store = build_store(StoreConfig.from_env())
    try:
        view = await load_gallery(store)
    except EggPoolError as e:
        print(f"Failed to load eggs: {e}", file=sys.stderr)
        return 1
    if view.is_empty:
        print("No eggs yet.")
        return 0
    print(view.count_text)
    print()
    eggs = view.eggs[:args.top] if args.top else view.eggs
    for egg in eggs:
        nick = f' "{egg.nickname}"' if egg.nickname else ""
        print(f"  {capitalize(egg.pokemon)}{nick} from {egg.submitter}")
        details = [d for d in (egg.ability, egg.item) if d]
        if details:
            print(f"    {' / '.join(details)}")
        if egg.moves:
            print(f"    Moves: {', '.join(egg.moves)}")
        if egg.message:
            print(f"    {egg.message}")
    return 0


async def cmd_submit(args: argparse.Namespace) -> int:
    store_config = StoreConfig.from_env()
    store = build_store(store_config)
    workflow = SubmissionWorkflow(
        build_coordinator(store, store_config),
        build_reference(ReferenceConfig.from_env()),
        # the name arrives complete on the command line
        lookup_delay_seconds=0,
        on_status=lambda text: print(text, file=sys.stderr),
    )
    if args.pokemon:
        workflow.on_pokemon_input(args.pokemon)
        lookup = await workflow.wait_for_lookup()
        if lookup.status is not LookupStatus.MATCHED:
            print(lookup.feedback, file=sys.stderr)

    form = SubmissionForm(
        submitter=args.submitter or "",
        nickname=args.nickname,
        ability=args.ability,
        item=args.item,
        moves=args.move or [],
        message=args.message,
    )
    outcome = await workflow.submit(form)
    workflow.close()
    if not outcome.ok:
        print(outcome.error, file=sys.stderr)
        return 1
    print(outcome.detail)
    return 0


async def cmd_lookup(args: argparse.Namespace) -> int:
    reference = build_reference(ReferenceConfig.from_env())
    try:
        entity = await reference.lookup_pokemon(args.name)
    except NotFoundError:
        print("✗ Pokemon not found", file=sys.stderr)
        return 1
    except EggPoolError as e:
        print(f"Lookup failed: {e}", file=sys.stderr)
        return 1
    print(f"✓ {entity.label}")
    print(f"  {entity.sprite_url}")
    return 0


async def cmd_reference(args: argparse.Namespace) -> int:
    config = ReferenceConfig.from_env()
    reference = build_reference(config)
    try:
        names = await reference.load_list(args.kind)
    except EggPoolError as e:
        print(f"Failed to load {args.kind}: {e}", file=sys.stderr)
        return 1
    limit = args.limit or config.search_limit
    for name in filter_candidates(names, args.query or "", limit):
        print(name)
    return 0


COMMANDS = {
    "gallery": cmd_gallery,
    "submit": cmd_submit,
    "lookup": cmd_lookup,
    "reference": cmd_reference,
}


# ── CLI ───────────────────────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="eggpool",
        description="Submit to and browse the shared Egglocke egg pool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""
            Examples:
              eggpool gallery --top 10
              eggpool submit --submitter Misty --pokemon staryu --move Surf
              eggpool lookup 25
              eggpool reference items --query berry
        """),
    )
    parser.add_argument("--log-format", choices=["text", "json"], default=None,
                        help="Log output format (default: APP_LOG_FORMAT or text)")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p_gallery = sub.add_parser("gallery", help="List submitted eggs, newest first")
    p_gallery.add_argument("--top", type=int, default=0,
                           help="Show only the N newest eggs")

    p_submit = sub.add_parser("submit", help="Add an egg to the pool")
    p_submit.add_argument("--submitter", required=True, help="Trainer name")
    p_submit.add_argument("--pokemon", required=True, help="Pokemon name or dex number")
    p_submit.add_argument("--nickname", default="")
    p_submit.add_argument("--ability", default="")
    p_submit.add_argument("--item", default="", help="Held item")
    p_submit.add_argument("--move", action="append",
                          help=f"Move (repeat up to {MAX_MOVES} times)")
    p_submit.add_argument("--message", default="", help="Note for the receiver")

    p_lookup = sub.add_parser("lookup", help="Confirm a Pokemon by name or number")
    p_lookup.add_argument("name")

    p_ref = sub.add_parser("reference", help="Search a cached reference list")
    p_ref.add_argument("kind", choices=LIST_KINDS)
    p_ref.add_argument("--query", "-q", default="")
    p_ref.add_argument("--limit", type=int, default=0)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    app_config = AppConfig.from_env()
    configure_logging(args.log_format or app_config.log_format,
                      "DEBUG" if args.verbose else app_config.log_level)

    try:
        return asyncio.run(COMMANDS[args.command](args))
    except ValueError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
