"""
Seclai CLI
==========
Thin command-line front end over SeclaiClient.

Commands:
    seclai sources [--page N] [--limit N] [--sort S] [--order O] [--account-id A]
    seclai run AGENT_ID [--input TEXT] [--metadata JSON] [--wait] [--timeout SECONDS]
    seclai get-run AGENT_ID RUN_ID

Results are printed to stdout as JSON. SDK errors go to stderr:
exit code 1 for API, transport, configuration and stream errors, 2 for
timeouts.
"""
import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional

import httpx
from pydantic import BaseModel

from seclai.client.api_client import SeclaiClient
from seclai.core.errors import SeclaiError, StreamTimeoutError
from seclai.models.agent_run import AgentRunRequest, AgentRunStreamRequest
from seclai.utils.logging_config import setup_logging

logger = logging.getLogger("seclai.cli")

EXIT_ERROR = 1
EXIT_TIMEOUT = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="seclai", description="Seclai API command-line client")
    parser.add_argument("--api-key", default=None, help="API key (default: $SECLAI_API_KEY)")
    parser.add_argument("--base-url", default=None, help="API base URL (default: $SECLAI_API_URL)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    parser.add_argument("--log-file", default=None, help="Also write logs to this file")

    commands = parser.add_subparsers(dest="command", required=True)

    sources = commands.add_parser("sources", help="List sources")
    sources.add_argument("--page", type=int, default=0)
    sources.add_argument("--limit", type=int, default=0)
    sources.add_argument("--sort", default="")
    sources.add_argument("--order", default="")
    sources.add_argument("--account-id", default="")

    run = commands.add_parser("run", help="Start an agent run")
    run.add_argument("agent_id")
    run.add_argument("--input", default=None)
    run.add_argument("--metadata", default=None, help="JSON object attached to the run")
    run.add_argument("--wait", action="store_true", help="Stream the run and wait for completion")
    run.add_argument("--timeout", type=float, default=None, help="Deadline in seconds for --wait")

    get_run = commands.add_parser("get-run", help="Fetch an agent run")
    get_run.add_argument("agent_id")
    get_run.add_argument("run_id")

    return parser


def _parse_metadata(raw: Optional[str]) -> Optional[dict]:
    if raw is None:
        return None
    metadata = json.loads(raw)
    if not isinstance(metadata, dict):
        raise ValueError("--metadata must be a JSON object")
    return metadata


async def _dispatch(args: argparse.Namespace) -> BaseModel:
    async with SeclaiClient(api_key=args.api_key, base_url=args.base_url) as client:
        if args.command == "sources":
            return await client.list_sources(
                page=args.page, limit=args.limit, sort=args.sort,
                order=args.order, account_id=args.account_id,
            )
        if args.command == "get-run":
            return await client.get_agent_run(args.agent_id, args.run_id)

        metadata = _parse_metadata(args.metadata)
        if args.wait:
            body = AgentRunStreamRequest(input=args.input, metadata=metadata)
            return await client.run_streaming_agent_and_wait(args.agent_id, body, timeout=args.timeout)
        return await client.run_agent(args.agent_id, AgentRunRequest(input=args.input, metadata=metadata))


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.WARNING, log_file=args.log_file)
    logger.debug("Running command %s", args.command)

    try:
        result = asyncio.run(_dispatch(args))
    except (StreamTimeoutError, httpx.TimeoutException) as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_TIMEOUT
    except (SeclaiError, httpx.HTTPError, ValueError) as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_ERROR

    print(result.model_dump_json(indent=2, exclude_none=True))
    return 0


if __name__ == "__main__":
    sys.exit(main())
