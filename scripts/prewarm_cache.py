# scripts/prewarm_cache.py
"""
Prewarm the Nominatim search cache for a list of queries.

Usage:
  python scripts/prewarm_cache.py queries.txt \
    --concurrency 1 \
    --spacing 1.1

Notes
- One query per line; blank lines and lines starting with '#' are skipped.
- Point REDIS_URL at the same Redis the API uses, otherwise this only
  warms a throwaway in-memory cache.
- Queries whose cached entry is still fresh (more than the cache refresh
  threshold left) are skipped unless --force is given.
- The public Nominatim instance allows about one request per second; keep
  --concurrency at 1 and --spacing >= 1 against it.
"""

import argparse
import asyncio
import csv
import datetime as dt
import logging
import time
from typing import Any, Dict, List

from nominatim_client import cache_keys
from nominatim_client.errors import NominatimRequestError
from nominatim_client.module import NominatimModule

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def load_queries(path: str) -> List[str]:
    queries: List[str] = []
    seen = set()
    with open(path, encoding="utf-8") as f:
        for line in f:
            q = line.strip()
            if not q or q.startswith("#") or q in seen:
                continue
            seen.add(q)
            queries.append(q)
    return queries


async def prewarm(module: NominatimModule, queries: List[str], concurrency: int = 1,
                  spacing: float = 1.1, force: bool = False) -> List[Dict[str, Any]]:
    assert concurrency >= 1, "concurrency must be >= 1"
    sem = asyncio.Semaphore(concurrency)
    cache = module.cache

    async def one(q: str) -> Dict[str, Any]:
        key = cache_keys.search(q)
        if cache is not None and not force and not await cache.needs_refresh(key):
            return {"query": q, "status": "fresh", "results": None, "elapsed_s": 0.0, "error": None}
        async with sem:
            t0 = time.time()
            try:
                places = await module.service.search(q, refresh=True)
                res = {"query": q, "status": "ok", "results": len(places), "error": None}
            except NominatimRequestError as e:
                res = {"query": q, "status": "error", "results": None, "error": str(e)[:300]}
            res["elapsed_s"] = round(time.time() - t0, 3)
            logger.info("[%s] %s in %ss", q, res["status"], res["elapsed_s"])
            await asyncio.sleep(spacing)
            return res

    return list(await asyncio.gather(*(one(q) for q in queries)))


def write_log(results: List[Dict[str, Any]], out_path: str) -> None:
    with open(out_path, "w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=["query", "status", "results", "elapsed_s", "error"])
        w.writeheader()
        w.writerows(sorted(results, key=lambda r: r["query"]))


async def _run(args: argparse.Namespace) -> None:
    queries = load_queries(args.queries_file)
    if args.limit and args.limit > 0:
        queries = queries[:args.limit]
    logger.info("Prewarming %d queries with concurrency=%d, spacing=%ss", len(queries), args.concurrency, args.spacing)

    module = NominatimModule.for_root()
    try:
        results = await prewarm(module, queries, concurrency=args.concurrency, spacing=args.spacing, force=args.force)
    finally:
        await module.close()

    stamp = dt.datetime.now(dt.timezone.utc).strftime("%Y%m%d_%H%M%S")
    out_path = args.out or f"prewarm_log_{stamp}.csv"
    write_log(results, out_path)
    ok_count = sum(1 for r in results if r["status"] != "error")
    logger.info("Done. %d/%d warm. Log: %s", ok_count, len(results), out_path)


def main():
    p = argparse.ArgumentParser()
    p.add_argument("queries_file", help="File with one search query per line")
    p.add_argument("--concurrency", type=int, default=1, help="Concurrent upstream requests")
    p.add_argument("--spacing", type=float, default=1.1, help="Seconds each worker waits after a request")
    p.add_argument("--limit", type=int, default=0, help="Limit number of queries (for testing)")
    p.add_argument("--force", action="store_true", help="Refetch even when the cached entry is fresh")
    p.add_argument("--out", default=None, help="CSV log path")
    asyncio.run(_run(p.parse_args()))


if __name__ == "__main__":
    main()
