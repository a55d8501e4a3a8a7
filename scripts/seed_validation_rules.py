#!/usr/bin/env python3
"""
Seed the sample validation rule set into Supabase.
Loads .env from project root.
Usage: python scripts/seed_validation_rules.py [--document-type "PDF Document"]
"""

import argparse
import logging
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from clearance.config import load_settings  # noqa: E402
from clearance.errors import ClearanceError  # noqa: E402
from clearance.supabase_client import get_service_role_client  # noqa: E402
from clearance.supabase_rules import SAMPLE_DOCUMENT_TYPE, create_sample_rules  # noqa: E402


def main() -> int:
    parser = argparse.ArgumentParser(description="Insert the sample validation rules")
    parser.add_argument("--document-type", default=SAMPLE_DOCUMENT_TYPE,
                        help=f"Document type the rules apply to (default: {SAMPLE_DOCUMENT_TYPE!r})")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    settings = load_settings()
    try:
        client = get_service_role_client(settings)
        count = create_sample_rules(client, args.document_type, settings)
    except ClearanceError as e:
        print(f"❌ {e}")
        return 1

    print(f"✅ Inserted {count} rules for {args.document_type!r}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
