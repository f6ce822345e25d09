#!/usr/bin/env python3
"""
progress_report.py - Export a learner's class progress as a table.

Reads the user's access list from the configured SQLite store and writes one
row per class (status, scores, completion) to CSV or JSON.

Usage:
  python scripts/progress_report.py --user u1
  python scripts/progress_report.py --user u1 --format json --output reports/u1.json
"""

import argparse
import logging
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

import pandas as pd

from gradegate.classroom import GradegateError, ProgressionEngine
from gradegate.utils import build_engine, load_settings, setup_logging

logger = logging.getLogger(__name__)

REPORT_COLUMNS = [
    "class_id",
    "status",
    "is_active",
    "current_score",
    "max_score",
    "completion_percentage",
    "unlocked_at",
    "completed_at",
]


def build_report(engine: ProgressionEngine, user_id: str) -> pd.DataFrame:
    """One row per class, catalog order, with per-category score columns."""
    records = engine.get_user_class_access(user_id)
    rows = []
    for access in records:
        row = access.model_dump(include=set(REPORT_COLUMNS))
        row["status"] = access.status.value
        for category, score in access.category_scores.items():
            row[f"score_{category.value}"] = score
        rows.append(row)

    df = pd.DataFrame(rows)
    if df.empty:
        return pd.DataFrame(columns=REPORT_COLUMNS)
    df["completion_percentage"] = df["completion_percentage"].round(1)
    return df


def main():
    parser = argparse.ArgumentParser(
        description="Export a learner's class progress.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/progress_report.py --user u1
  python scripts/progress_report.py --user u1 --format json --output reports/u1.json
        """,
    )
    parser.add_argument("--user", required=True, help="User id to report on")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Optional YAML settings file",
    )
    parser.add_argument(
        "--format",
        choices=["csv", "json"],
        default="csv",
        help="Output format (default: csv)",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Output file (default: print to stdout)",
    )
    args = parser.parse_args()

    settings = load_settings(args.config)
    setup_logging(settings.log_level)
    engine = build_engine(settings)

    try:
        df = build_report(engine, args.user)
    except GradegateError as e:
        logger.error(f"Could not read progress for {args.user}: {e}")
        sys.exit(1)

    if df.empty:
        print(f"No class access records for user {args.user}")
        sys.exit(0)

    if args.format == "csv":
        text = df.to_csv(index=False)
    else:
        text = df.to_json(orient="records", date_format="iso", indent=2)
    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(text, encoding="utf-8")
        logger.info(f"Wrote {len(df)} rows to {args.output}")
    else:
        print(text)


if __name__ == "__main__":
    main()
