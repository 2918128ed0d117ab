#!/usr/bin/env python3
"""Command-line entry point for hotel knowledge briefs.

Usage:
  python pipeline.py query --hotel-id amanzoe_gr --traveler-type honeymoon \
      --season late_september --role reservations          # Print brief JSON
  python pipeline.py query ... --no-promotions --output brief.json
  python pipeline.py query ... --use-llm                    # Narrative rewrite

  python pipeline.py check-data                             # Validate dataset

  python pipeline.py serve --port 8501                      # Launch the API
"""

import argparse
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

PROJECT_ROOT = Path(__file__).parent

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[logging.StreamHandler(sys.stderr)],
)
logger = logging.getLogger(__name__)


def cmd_query(args):
    """Run one structured query and print or save the brief."""
    import orjson

    from webapp.app import build_engine
    from webapp.brief.errors import BriefQueryError
    from webapp.settings import load_settings

    engine = build_engine(load_settings())
    payload = {
        "hotelId": args.hotel_id,
        "travelerType": args.traveler_type,
        "season": args.season,
        "role": args.role,
        "includeRisks": not args.no_risks,
        "includePromotions": not args.no_promotions,
        "includeUjvPov": not args.no_ujv_pov,
        "useLLM": args.use_llm,
    }

    try:
        response = engine.query(payload)
    except BriefQueryError as e:
        logger.error("%s: %s", e.error_code, e.message)
        sys.exit(1)

    body = orjson.dumps(response.to_payload(), option=orjson.OPT_INDENT_2)
    if args.output:
        Path(args.output).write_bytes(body)
        logger.info("Brief written to %s", args.output)
    else:
        print(body.decode())

    trust = response.trust
    logger.info(
        "Evidence %.2f (%s), compliance %s, escalation %s",
        trust.evidence_strength_score,
        trust.evidence_strength_label,
        trust.policy_compliance,
        trust.escalation_reason or "none",
    )


def cmd_check_data(args):
    """Load the dataset and report dangling source references."""
    from webapp.brief.loader import JsonDatasetLoader, check_references
    from webapp.settings import load_settings

    settings = load_settings()
    loader = JsonDatasetLoader(
        settings.data_dir,
        settings.hotel_file,
        settings.sources_file,
        settings.chunks_file,
    )
    dataset = loader.load()

    hotel_chunks = sum(1 for c in dataset.chunks if c.hotel_id == dataset.hotel.hotel_id)
    print(f"\nDataset: {settings.data_dir}")
    print(f"  Hotel:   {dataset.hotel.hotel_id} ({dataset.hotel.name})")
    print(f"  Sources: {len(dataset.sources)}")
    print(f"  Chunks:  {len(dataset.chunks)} ({hotel_chunks} for this hotel)")

    dangling = check_references(dataset)
    if dangling:
        print(f"  Dangling source references ({len(dangling)}):")
        for source_id in dangling:
            print(f"    - {source_id}")
        sys.exit(1)
    print("  All source references resolve.")


def cmd_serve(args):
    """Launch the brief API."""
    import uvicorn

    logger.info("=" * 60)
    logger.info("LAUNCHING HOTEL BRIEF API")
    logger.info("  http://localhost:%d", args.port)
    logger.info("=" * 60)

    uvicorn.run(
        "webapp.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level="info",
    )


def main():
    from schemas.brief import Role
    from schemas.hotel import Season, TravelerType

    parser = argparse.ArgumentParser(
        description="Hotel Knowledge Brief",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Query
    query_parser = subparsers.add_parser("query", help="Build a brief for one hotel")
    query_parser.add_argument("--hotel-id", required=True, help="Canonical hotel id")
    query_parser.add_argument(
        "--traveler-type",
        required=True,
        choices=[t.value for t in TravelerType],
    )
    query_parser.add_argument("--season", required=True, choices=[s.value for s in Season])
    query_parser.add_argument("--role", required=True, choices=[r.value for r in Role])
    query_parser.add_argument("--no-risks", action="store_true", help="Skip the risks section")
    query_parser.add_argument("--no-promotions", action="store_true", help="Skip the promotions section")
    query_parser.add_argument("--no-ujv-pov", action="store_true", help="Skip the UJV POV section")
    query_parser.add_argument("--use-llm", action="store_true", help="Request narrative rewrite")
    query_parser.add_argument("--output", default=None, help="Write JSON to this file")

    # Check data
    subparsers.add_parser("check-data", help="Validate the dataset and its references")

    # Serve
    serve_parser = subparsers.add_parser("serve", help="Launch the brief API")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind host")
    serve_parser.add_argument("--port", type=int, default=8501, help="Bind port")
    serve_parser.add_argument("--reload", action="store_true", help="Auto-reload on code changes")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    commands = {
        "query": cmd_query,
        "check-data": cmd_check_data,
        "serve": cmd_serve,
    }

    try:
        commands[args.command](args)
    except Exception as e:
        logger.exception("Pipeline error: %s", e)
        sys.exit(1)


if __name__ == "__main__":
    main()
