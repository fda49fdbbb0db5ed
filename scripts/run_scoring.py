"""
scripts/run_scoring.py — CLI to score a prospects CSV against an offer, offline.

Usage:
    python scripts/run_scoring.py --offer offer.json --leads leads.csv
    python scripts/run_scoring.py --offer offer.json --leads leads.csv --out results.csv
    python scripts/run_scoring.py --offer offer.json --leads leads.csv --no-ai --batch-size 10

offer.json holds {"name": ..., "value_propositions": [...], "ideal_use_cases": [...]}.
"""

import sys
import os
import argparse
import asyncio
import dataclasses
import json
import logging

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from leadscore.config import settings

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("run_scoring")

from pydantic import ValidationError

from leadscore.errors import CsvFormatError
from leadscore.export.csv_export import scored_leads_to_csv
from leadscore.ingestion.csv_loader import parse_prospect_csv
from leadscore.services.lead_service import build_orchestrator
from leadscore.services.scoring import ScoringConfig
from api.schemas import OfferIn


def run(offer_path: str, leads_path: str, out_path: str | None, use_ai: bool, batch_size: int) -> int:
    print("\n" + "=" * 55)
    print("  Lead Score - Offline Scoring")
    print("=" * 55)

    # ── Step 1: Offer ─────────────────────────────────────────
    print(f"\n[1/4] Loading offer from {offer_path}...")
    try:
        with open(offer_path, encoding="utf-8") as f:
            offer = OfferIn(**json.load(f)).to_domain()
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        print(f"      Invalid offer file: {e}")
        return 1
    print(f"      Offer: {offer.name}")

    # ── Step 2: Leads ─────────────────────────────────────────
    print(f"\n[2/4] Parsing leads from {leads_path}...")
    try:
        with open(leads_path, "rb") as f:
            parsed = parse_prospect_csv(f.read(), max_rows=settings.max_leads_per_upload)
    except (OSError, CsvFormatError) as e:
        print(f"      Could not read leads: {e}")
        return 1

    print(f"      {len(parsed.prospects)} valid leads, {parsed.rejected_rows} rejected rows.")
    for err in parsed.errors[:10]:
        print(f"        row {err.row} [{err.field}]: {err.message}")
    if not parsed.prospects:
        print("      No valid leads to score. Exiting.")
        return 1

    # ── Step 3: Score ─────────────────────────────────────────
    config = dataclasses.replace(
        ScoringConfig.from_settings(settings),
        use_ai=use_ai and settings.scoring_use_ai,
        batch_size=batch_size,
    )
    mode = "AI + rules" if config.use_ai else "rules only"
    print(f"\n[3/4] Scoring ({mode}, batch size {config.batch_size})...")
    orchestrator = build_orchestrator(config)
    results, stats = asyncio.run(orchestrator.run_batch(parsed.prospects, offer))

    # ── Step 4: Output ────────────────────────────────────────
    print("\n[4/4] Results")
    for lead in sorted(results, key=lambda r: r.total_score, reverse=True):
        print(f"      {lead.total_score:>3}  {lead.intent_level.value:<6}  {lead.name} ({lead.company})")

    if out_path:
        with open(out_path, "w", encoding="utf-8", newline="") as f:
            f.write(scored_leads_to_csv(results))
        print(f"\n      Wrote {len(results)} rows to {out_path}")

    print("\n" + "=" * 55)
    print(
        f"  Done: {stats.successful_scores} scored, {stats.failed_scores} failed, "
        f"{stats.fallback_analyses} fallback analyses."
    )
    print(f"  Distribution: {stats.intent_distribution}")
    print("=" * 55 + "\n")
    return 0


def main():
    parser = argparse.ArgumentParser(description="Score a prospects CSV against an offer.")
    parser.add_argument("--offer", required=True, help="Path to the offer JSON file")
    parser.add_argument("--leads", required=True, help="Path to the prospects CSV file")
    parser.add_argument("--out", default=None, help="Write scored results to this CSV path")
    parser.add_argument(
        "--no-ai", action="store_true",
        help="Skip the remote classifier and use rule-based fallback intent",
    )
    parser.add_argument(
        "--batch-size", type=int, default=settings.scoring_batch_size,
        help="Leads scored concurrently per batch (default from .env)",
    )
    args = parser.parse_args()
    if args.batch_size < 1:
        parser.error("--batch-size must be at least 1")

    sys.exit(run(args.offer, args.leads, args.out, use_ai=not args.no_ai, batch_size=args.batch_size))


if __name__ == "__main__":
    main()
