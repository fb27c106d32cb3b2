#!/usr/bin/env python3
"""
Compute embeddings for stored forms that were persisted without one
(e.g. the embedding provider was down when they were created).

Usage:
  PYTHONPATH=src python scripts/backfill_embeddings.py --limit 100
  PYTHONPATH=src python scripts/backfill_embeddings.py --dry-run
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path


def _repo_root() -> Path:
    return Path(__file__).resolve().parents[1]


def _ensure_import_paths() -> None:
    src = str(_repo_root() / "src")
    if src not in sys.path:
        sys.path.insert(0, src)


def main() -> int:
    ap = argparse.ArgumentParser(description="Backfill embeddings for stored forms that have none.")
    ap.add_argument("--limit", type=int, default=0, help="Max forms to process (0 = all).")
    ap.add_argument("--dry-run", action="store_true", help="List forms that would be backfilled without writing.")
    args = ap.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    _ensure_import_paths()
    from ai_form_builder.api.deps import build_services
    from ai_form_builder.settings import Settings

    settings = Settings.from_env()
    if not settings.embedding_enabled:
        print("Warning: EMBEDDING_API_KEY not set; using deterministic pseudo-embeddings.")

    # Run vector upserts inline so they finish before the process exits.
    services = build_services(settings, run_in_background=lambda fn: fn())
    forms = services.store.list_forms_missing_embedding(args.limit or None)
    if not forms:
        print("No forms missing embeddings.")
        return 0

    updated = 0
    for form in forms:
        if args.dry_run:
            print(f"- {form.id} owner={form.owner_id} title={form.title!r}")
            continue
        result = services.orchestrator.backfill_embedding(form)
        if result.embedding:
            updated += 1
            print(f"- {form.id}: {len(result.embedding)} dims")
        else:
            print(f"- {form.id}: embedding failed")

    if args.dry_run:
        print(f"Would backfill {len(forms)} forms")
        return 0
    print(f"Backfilled {updated}/{len(forms)} forms")
    return 0 if updated == len(forms) else 1


if __name__ == "__main__":
    raise SystemExit(main())
