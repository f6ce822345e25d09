#!/usr/bin/env python3
"""
validate_catalog.py - Check a class catalog before deploying it.

Loads a YAML catalog, validates every class definition and the prerequisite
graph, then prints classes in prerequisite order with their maximum score.

Usage:
  python scripts/validate_catalog.py
  python scripts/validate_catalog.py --catalog config/classes.yaml
"""

import argparse
import logging
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from gradegate.classroom import (
    CatalogError,
    DEFAULT_CATALOG_PATH,
    compute_max_score,
    load_catalog,
)
from gradegate.utils import setup_logging

setup_logging(logging.INFO)
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(
        description="Validate a class catalog YAML file.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/validate_catalog.py
  python scripts/validate_catalog.py --catalog config/classes.yaml
        """,
    )
    parser.add_argument(
        "--catalog",
        type=Path,
        default=DEFAULT_CATALOG_PATH,
        help="Catalog YAML file (default: bundled gradegate/data/classes.yaml)",
    )
    args = parser.parse_args()

    try:
        catalog = load_catalog(args.catalog)
    except FileNotFoundError as e:
        print(f"ERROR: {e}")
        sys.exit(1)
    except CatalogError as e:
        logger.error(f"Catalog is invalid: {e}")
        sys.exit(1)

    print(f"\nCatalog OK: {len(catalog)} classes\n")
    for class_id in catalog.topological_order():
        class_def = catalog.get_class(class_id)
        prereq = class_def.prerequisite_class or "-"
        print(
            f"  {class_id:<20} {class_def.level.value:<14} "
            f"max={compute_max_score(class_def):<5} "
            f"requires={prereq} (score >= {class_def.required_score})"
        )


if __name__ == "__main__":
    main()
