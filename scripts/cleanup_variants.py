"""Command line entry point for the variant retention policy."""

from __future__ import annotations

import argparse
import asyncio
import sys
from dataclasses import dataclass

from src.aspect_service.config import load_config
from src.aspect_service.jobs.cleanup import VariantCleanup
from src.aspect_service.media.object_store import LocalObjectStore
from src.aspect_service.repositories.character_repository import CharacterRepository


@dataclass(slots=True)
class CleanupSummary:
    character_id: str
    removed: int
    dry_run: bool


def perform_cleanup(
    character_id: str,
    *,
    dry_run: bool,
    retain: int | None = None,
) -> CleanupSummary:
    """Apply retention for one character and return summary counters."""
    config = load_config()
    cleanup = VariantCleanup(
        store=LocalObjectStore(config.media_paths),
        retain=retain if retain is not None else config.variants.retain_count,
        records=CharacterRepository(config.session_factory),
    )
    removed = asyncio.run(cleanup.run(character_id, dry_run=dry_run))
    return CleanupSummary(character_id=character_id, removed=removed, dry_run=dry_run)


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Delete superseded aspect ratio variants.")
    parser.add_argument("character_id", help="Character whose variants are cleaned.")
    parser.add_argument("--retain", type=int, default=None, help="Number of newest files to keep.")
    parser.add_argument("--dry-run", action="store_true", help="Only report counts without deleting files.")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv if argv is not None else sys.argv[1:])
    summary = perform_cleanup(args.character_id, dry_run=args.dry_run, retain=args.retain)
    verb = "would remove" if summary.dry_run else "removed"
    print(f"{summary.character_id}: {verb} {summary.removed} file(s)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
