#!/usr/bin/env python3
"""Build the outline of a saved chat page.

Usage:
    python3 scripts/build_chat_index.py --html saved/chat.html --host chatgpt.com

    # Persist the snapshot and print the collapsed view:
    python3 scripts/build_chat_index.py --html saved/chat.html \
      --host https://chatgpt.com/c/abc --out output/chat_index.json \
      --collapse gpt-msg-1-h1-0

    # Search view (collapse state ignored while searching):
    python3 scripts/build_chat_index.py --html saved/chat.html \
      --host localhost --query install

Structured JSON output goes to stdout; human messages go to stderr.
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any

from chat_index.config import DEFAULT_CONFIG, IndexerConfig
from chat_index.html_utils import parse_html
from chat_index.io_utils import dumps
from chat_index.sections import all_units
from chat_index.sink import JsonFileSink, serialize_sections
from chat_index.strategy import ChatIndexer
from chat_index.visibility import outline_view

log = logging.getLogger("build_chat_index")


def dump_json(obj: Any) -> None:
    sys.stdout.buffer.write(dumps(obj, pretty=True))
    sys.stdout.buffer.write(b"\n")


def parse_csv(raw: str) -> list[str]:
    return [part.strip() for part in raw.split(",") if part.strip()]


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Build the outline of a saved chat page.")
    parser.add_argument("--html", required=True, help="Path to the saved page HTML")
    parser.add_argument("--host", required=True, help="Site host name or page URL")
    parser.add_argument("--config", default=None, help="Optional indexer config JSON")
    parser.add_argument("--out", default=None, help="Write the serialized outline here")
    parser.add_argument(
        "--collapse",
        default="",
        help="Comma-separated unit ids to collapse in the printed view",
    )
    parser.add_argument("--query", default="", help="Search filter for the printed view")
    parser.add_argument("--verbose", action="store_true", help="Verbose logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    html_path = Path(args.html)
    if not html_path.exists():
        log.error("HTML file not found: %s", html_path)
        return 1

    config = IndexerConfig.from_json(Path(args.config)) if args.config else DEFAULT_CONFIG
    indexer = ChatIndexer(args.host, config=config)
    if indexer.active is None:
        log.warning("No strategy handles %s; the outline will be empty", args.host)

    soup = parse_html(html_path.read_text(encoding="utf-8", errors="replace"))
    sections = indexer.reparse(soup)
    unit_count = len(all_units(sections))
    log.info("Indexed %d units in %d sections", unit_count, len(sections))

    if args.out:
        JsonFileSink(Path(args.out))(serialize_sections(sections, config=config))
        log.info("Outline written to %s", args.out)

    dump_json({
        "host": args.host,
        "strategy": indexer.active.name if indexer.active else None,
        "sections": outline_view(sections, args.query, set(parse_csv(args.collapse))),
    })
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
