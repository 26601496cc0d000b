from __future__ import annotations

import argparse
import json
import os
import sys
from datetime import date

SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.abspath(os.path.join(SCRIPT_DIR, ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)


def load_env_file(env_path: str) -> None:
    if not os.path.exists(env_path):
        return
    with open(env_path, "r", encoding="utf-8") as env_file:
        for line in env_file:
            line = line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            key, value = line.split("=", 1)
            os.environ.setdefault(key, value)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Report active hotel/transport rates whose validity windows overlap."
    )
    parser.add_argument("--hotel-id", action="append", default=[], help="Hotel id to audit (repeatable).")
    parser.add_argument(
        "--location-id", action="append", default=[], help="Transport location id to audit (repeatable)."
    )
    parser.add_argument("--start-date", type=date.fromisoformat, required=True, help="YYYY-MM-DD")
    parser.add_argument("--end-date", type=date.fromisoformat, required=True, help="YYYY-MM-DD")
    parser.add_argument(
        "--env-file",
        default=os.path.join(PROJECT_ROOT, ".env"),
        help="Path to .env file.",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    if not args.hotel_id and not args.location_id:
        raise SystemExit("Pass at least one --hotel-id or --location-id")
    load_env_file(os.path.abspath(args.env_file))

    from src.api.dependencies import get_pricing_service
    from src.core.logging import configure_logging

    configure_logging()
    service = get_pricing_service()
    result = service.audit_stored_catalog(
        args.hotel_id, args.location_id, args.start_date, args.end_date
    )
    print(json.dumps(result.model_dump(by_alias=True), indent=2, default=str))
    if result.overlaps:
        sys.exit(1)


if __name__ == "__main__":
    main()
