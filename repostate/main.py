"""CLI entry point for repostate."""

import argparse
import asyncio
import json
import sys
from collections.abc import Sequence

import structlog
from pydantic import BaseModel

from repostate.app import build_client
from repostate.core.config import RepoStateConfig
from repostate.exceptions import RepoStateError
from repostate.git.client import GitClient

logger = structlog.get_logger()

COMMANDS = ("status", "branches", "log", "remotes", "config")


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="repostate", description="Print repository state as JSON."
    )
    parser.add_argument("command", choices=COMMANDS)
    parser.add_argument("path", nargs="?", default=".")
    parser.add_argument("-n", "--limit", type=int, default=50, help="log entries")
    parser.add_argument(
        "--current-only",
        action="store_true",
        help="log only the current branch",
    )
    return parser.parse_args(argv)


def _to_json(value: object) -> object:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, list):
        return [_to_json(v) for v in value]
    return value


async def _dispatch(client: GitClient, args: argparse.Namespace) -> object:
    if args.command == "status":
        return await client.get_status(args.path)
    if args.command == "branches":
        return await client.get_branches(args.path)
    if args.command == "log":
        return await client.get_commit_log(
            args.path, args.limit, all_branches=not args.current_only
        )
    if args.command == "remotes":
        return await client.get_remotes(args.path)
    return await client.get_user_config(args.path)


async def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    try:
        config = RepoStateConfig()
    except Exception as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    client = build_client(config)
    try:
        result = await _dispatch(client, args)
    except (RepoStateError, ValueError) as e:
        logger.error("command_failed", command=args.command, error=str(e))
        print(json.dumps({"error": str(e)}))
        return 1

    print(json.dumps(_to_json(result), indent=2))
    return 0


def run() -> None:
    sys.exit(asyncio.run(main()))
