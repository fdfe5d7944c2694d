#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio
import logging

from chunkatron import Chunkatron, ConfigurationError


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Download report rows in concurrent chunks")
    p.add_argument("--url", required=True, help="Endpoint each chunk is POSTed to")
    source = p.add_mutually_exclusive_group(required=True)
    source.add_argument("--chunks-url", help="Endpoint returning a JSON array of chunks")
    source.add_argument(
        "--ids", nargs="+", type=int, help="Identifiers to split into chunks locally"
    )
    p.add_argument("--chunk-size", type=int, default=50, help="Identifiers per chunk (--ids)")
    p.add_argument("--concurrency", type=int, default=10)
    p.add_argument("--retries", type=int, default=3)
    p.add_argument("--timeout", type=float, default=None, help="Per-chunk fetch timeout (s)")
    p.add_argument("--verbose", action="store_true")
    return p.parse_args()


async def main() -> None:
    args = parse_args()
    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)

    chunks = None
    if args.ids:
        size = args.chunk_size
        chunks = [args.ids[i : i + size] for i in range(0, len(args.ids), size)]

    rows: list[object] = []
    try:
        chunkatron = Chunkatron(
            url=args.url,
            chunks=chunks,
            chunks_url=args.chunks_url,
            concurrent_downloads_max=args.concurrency,
            max_download_retries=args.retries,
            fetch_timeout=args.timeout,
            verbose=args.verbose,
            on_initial_retrieval_complete=lambda count: print(f"RETRIEVED {count} chunk(s)"),
            on_item_downloaded=rows.append,
            on_chunk_error=lambda error: print(f"ERROR {error}"),
            on_chunk_give_up=lambda chunk: print(f"GAVE UP {chunk[0]} ({len(chunk)} ids)"),
            on_all_finished=lambda: print("FINISHED"),
        )
    except ConfigurationError as e:
        raise SystemExit(f"Invalid configuration: {e}") from e

    async with chunkatron:
        stats = await chunkatron.run()

    print(
        f"rows={len(rows)} fetches={stats.fetches_dispatched} errors={stats.fetch_errors} "
        f"abandoned={stats.chunks_abandoned} elapsed={stats.elapsed_ms:.0f}ms"
    )


if __name__ == "__main__":
    asyncio.run(main())
