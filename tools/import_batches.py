"""Import match batch JSON files into the league collections.

Each file holds one batch payload or a list of them, in the same shape the
POST /api/batches endpoint accepts (`matches`/`allMatches`, `trn`/`tournament`,
`home`/`homeTeam`, ...).

Usage:
    python -m tools.import_batches week3.json week4.json
    python -m tools.import_batches --dry-run scraped/*.json
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

sys.path.insert(0, "backend")

from app.database import MongoConnectionPool
from app.errors import StorageUnavailable
from app.middleware.logging import setup_logging
from app.services.batch_normalizer import validate_batch_payload
from app.services.batch_store import MatchBatchStore

logger = logging.getLogger("matchbatch.import")


def load_payloads(path: Path) -> list:
    data = json.loads(path.read_text(encoding="utf-8"))
    return data if isinstance(data, list) else [data]


def _line(tag: str, text: str) -> None:
    print(f"  {tag:<7} {text}")


async def run(paths: list[Path], dry_run: bool) -> int:
    """Import every payload; return the number of rejected payloads."""
    pool = None if dry_run else MongoConnectionPool.from_settings()
    store = MatchBatchStore(pool) if pool else None
    rejected = 0
    created = updated = 0
    try:
        for path in paths:
            for index, payload in enumerate(load_payloads(path)):
                result = validate_batch_payload(payload)
                label = f"{path.name}[{index}]"
                if not result.ok:
                    rejected += 1
                    _line("REJECT", f"{label}: {result.error.code} ({result.error.message})")
                    continue
                batch = result.batch
                for warning in result.warnings:
                    _line("WARN", f"{label} {batch.id}: {warning}")
                if store is None:
                    _line("OK", f"{label} {batch.id} ({len(batch.matches)} matches)")
                    continue
                outcome = await store.upsert_batch(batch)
                action = "created" if outcome["created"] else "updated"
                created += outcome["created"]
                updated += not outcome["created"]
                _line(action.upper(), f"{label} {batch.id} ({len(batch.matches)} matches)")
    finally:
        if pool is not None:
            await pool.close()

    print(f"\nDone. created={created} updated={updated} rejected={rejected}")
    return rejected


def main() -> None:
    parser = argparse.ArgumentParser(description="Import match batch JSON files.")
    parser.add_argument("files", nargs="+", type=Path, help="JSON files with batch payloads")
    parser.add_argument("--dry-run", action="store_true", help="Validate only, no writes")
    parser.add_argument("--verbose", "-v", action="store_true")
    args = parser.parse_args()

    setup_logging(logging.DEBUG if args.verbose else logging.WARNING)
    try:
        rejected = asyncio.run(run(args.files, args.dry_run))
    except StorageUnavailable as exc:
        print(f"MongoDB unavailable: {exc}", file=sys.stderr)
        sys.exit(2)
    sys.exit(1 if rejected else 0)


if __name__ == "__main__":
    main()
