#!/usr/bin/env python3
"""
grant_starters.py
-----------------

Backfills the tier-0 starter weapon and gear for players who hold none of
that kind (accounts created while the starter kit was disabled, or players
who removed their starters). Each player is fixed in its own transaction;
re-running is harmless.

USAGE:
  python scripts/grant_starters.py                      # every stored player
  python scripts/grant_starters.py --player 42 --player 43
  python scripts/grant_starters.py --database-url sqlite+aiosqlite:///funtan.db
"""

import argparse
import asyncio
import json
import sys
from typing import List, Optional

from funtan.core.database.service import DatabaseService
from funtan.modules.engine.service import GameEngine


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Grant missing starter items.")
    parser.add_argument(
        "--player",
        dest="players",
        action="append",
        help="Player id to check (repeatable). Defaults to all players.",
    )
    parser.add_argument(
        "--database-url",
        default=None,
        help="Overrides DATABASE_URL from the environment.",
    )
    return parser.parse_args(argv)


async def run(players: Optional[List[str]], database_url: Optional[str]) -> int:
    await DatabaseService.initialize(database_url)
    try:
        engine = await GameEngine.build()
        try:
            result = await engine.grant_missing_starters(players)
        finally:
            await engine.shutdown()
    finally:
        await DatabaseService.shutdown()

    if not result.success:
        print(f"Backfill failed: {result.error}", file=sys.stderr)
        return 1

    print(json.dumps(result.data, indent=2))
    print(f"Checked {result.data['checked']}, granted {len(result.data['granted'])}")
    return 0


def main() -> None:
    args = parse_args()
    sys.exit(asyncio.run(run(args.players, args.database_url)))


if __name__ == "__main__":
    main()
