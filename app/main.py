"""Member group processor entry point.

Replays recorded stream messages through the dispatcher:

    python main.py replay messages.jsonl
    cat messages.jsonl | python main.py replay

Each line is a JSON object with a ``topic`` and either a ``message`` object
or a raw ``value`` string, plus optional ``partition`` and ``offset``.
"""

import argparse
import json
import sys
from typing import Iterator, List, Optional, TextIO

from dotenv import load_dotenv
from core.config import settings
from core.logging import get_module_logger
from integrations.m2m import M2MTokenProvider
from modules.communities import (
    DispatchOutcome,
    DispatchStatus,
    MessageDispatcher,
)

logger = get_module_logger()

load_dotenv()


def build_dispatcher() -> MessageDispatcher:
    """Wire settings into a dispatcher."""
    return MessageDispatcher(token_provider=M2MTokenProvider.from_settings())


def read_records(stream: TextIO) -> Iterator[dict]:
    """Yield dispatcher records from newline-delimited JSON."""
    for line_number, line in enumerate(stream, start=1):
        line = line.strip()
        if not line:
            continue
        try:
            record = json.loads(line)
        except json.JSONDecodeError as e:
            logger.error("invalid_replay_line", line_number=line_number, error=str(e))
            continue
        if not isinstance(record, dict) or "topic" not in record:
            logger.error("replay_line_without_topic", line_number=line_number)
            continue
        value = record.get("value")
        if value is None:
            value = record.get("message", {})
        yield {
            "topic": record["topic"],
            "value": value,
            "partition": record.get("partition"),
            "offset": record.get("offset", line_number),
        }


def replay(dispatcher: MessageDispatcher, stream: TextIO) -> List[DispatchOutcome]:
    """Dispatch every record of ``stream`` in order."""
    outcomes = dispatcher.handle_batch(read_records(stream))
    failed = [o for o in outcomes if o.status == DispatchStatus.FAILED]
    logger.info(
        "replay_completed",
        total=len(outcomes),
        failed=len(failed),
        rejected=len([o for o in outcomes if o.status == DispatchStatus.REJECTED]),
    )
    return outcomes


def main(argv: Optional[List[str]] = None) -> int:
    """Main function to start the processor."""
    parser = argparse.ArgumentParser(prog="member-group-processor")
    subparsers = parser.add_subparsers(dest="command", required=True)
    replay_parser = subparsers.add_parser(
        "replay", help="Dispatch newline-delimited JSON messages"
    )
    replay_parser.add_argument(
        "file", nargs="?", help="File to read (defaults to stdin)"
    )
    args = parser.parse_args(argv)

    logger.info(
        "application_startup",
        topics=settings.stream.topics,
        group_api=settings.group_api.TC_API_BASE_URL,
        git_sha=settings.GIT_SHA,
    )

    dispatcher = build_dispatcher()
    if args.file:
        with open(args.file, encoding="utf-8") as stream:
            outcomes = replay(dispatcher, stream)
    else:
        outcomes = replay(dispatcher, sys.stdin)

    return 1 if any(o.status == DispatchStatus.FAILED for o in outcomes) else 0


if __name__ == "__main__":
    sys.exit(main())
