"""
Maintenance commands for the progression store.

    python -m backend.cli process-atrophy
    python -m backend.cli grant-immunity <user_id>
"""
import argparse
import json
import logging
import sys
from typing import Optional, Sequence

from application.exceptions import ProgressionError
from backend.core.atrophy import AtrophyService
from backend.settings import Settings, get_settings
from infrastructure import SupabaseUserProgressRepository

logger = logging.getLogger(__name__)


def build_atrophy_service(settings: Settings) -> AtrophyService:
    """AtrophyService backed by Supabase, configured from settings."""
    from supabase import create_client

    if not settings.supabase_url or not settings.supabase_key:
        raise SystemExit("Error: SUPABASE_URL and a Supabase key must be configured")

    client = create_client(settings.supabase_url, settings.supabase_key)
    return AtrophyService(
        SupabaseUserProgressRepository(client),
        rate=settings.atrophy_rate,
        immunity_days=settings.new_user_immunity_days,
        batch_size=settings.batch_size,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Guild progression maintenance")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser(
        "process-atrophy",
        help="Decay stat XP for every inactive user without immunity",
    )
    grant = commands.add_parser(
        "grant-immunity",
        help="Protect a new user from atrophy",
    )
    grant.add_argument("user_id", help="User to protect")
    return parser


def main(argv: Optional[Sequence[str]] = None, service: Optional[AtrophyService] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if service is None:
        service = build_atrophy_service(get_settings())

    try:
        if args.command == "process-atrophy":
            summary = service.process_atrophy()
            print(json.dumps({
                "candidates": summary.candidates,
                "applied": len(summary.applied),
                "skipped": len(summary.skipped),
                "failed": summary.failed,
            }))
            return 1 if summary.failed else 0

        user = service.grant_new_user_immunity(args.user_id)
        print(json.dumps({
            "user_id": user.id,
            "atrophy_immunity_until": user.atrophy_immunity_until,
        }))
        return 0
    except ProgressionError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
