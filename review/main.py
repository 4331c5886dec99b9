# review/main.py
"""
CLI entrypoint for the resource reviewer.

- Reads an inventory export CSV (header row + one row per resource).
- Evaluates each resource against the best-practice rules for its type.
- Produces JSON, CSV, HTML, and XLSX reports and prints a colorful summary table.
"""

import argparse
import logging
import os
import sys

from review.config import DEFAULT_LANGUAGE, DEFAULT_REPORT_DIR, LANGUAGE_ENV_VAR, SUPPORTED_LANGUAGES
from review import ParseError, records_from_table, run_review
from review.utils import load_csv_table, print_summary_and_report_path, save_report

logger = logging.getLogger("azure_review")


def resolve_language(cli_value: str = None) -> str:
    """
    Resolve the report language: CLI -> env -> config default.
    """
    language = cli_value or os.environ.get(LANGUAGE_ENV_VAR) or DEFAULT_LANGUAGE
    if language not in SUPPORTED_LANGUAGES:
        raise ValueError(
            f"Unsupported language {language!r} (from {LANGUAGE_ENV_VAR}); "
            f"expected one of {', '.join(SUPPORTED_LANGUAGES)}"
        )
    return language


def run_review_file(file_path: str, language: str, report_dir: str = DEFAULT_REPORT_DIR,
                    strict: bool = False, print_table: bool = False):
    """
    Review a local inventory CSV and write the reports.
    """
    logger.info("Reviewing inventory file: %s (language=%s)", file_path, language)
    table = load_csv_table(file_path)
    records = records_from_table(table)
    report = run_review(records, language, strict=strict)
    report_paths = save_report(
        report,
        language,
        extra={"source_file": file_path, "records": len(records)},
        out_dir=report_dir,
    )
    print_summary_and_report_path(report, report_paths, print_full_table=print_table)
    return report, report_paths


def parse_args(argv=None):
    p = argparse.ArgumentParser(
        description="Review a cloud resource inventory export against best-practice rules."
    )
    p.add_argument(
        "file",
        help="Path to the inventory export CSV",
    )
    p.add_argument(
        "--lang",
        choices=SUPPORTED_LANGUAGES,
        help=f"Language of issue text (default: ${LANGUAGE_ENV_VAR} or {DEFAULT_LANGUAGE})",
    )
    p.add_argument(
        "--report-dir",
        default=DEFAULT_REPORT_DIR,
        help=f"Directory to save reports (default: {DEFAULT_REPORT_DIR})",
    )
    p.add_argument(
        "--strict",
        action="store_true",
        help="Fail when a resource id is malformed instead of skipping the record",
    )
    p.add_argument(
        "--print-table",
        action="store_true",
        help="Print every affected resource to stdout",
    )
    p.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return p.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)
    try:
        language = resolve_language(args.lang)
        run_review_file(
            args.file,
            language,
            report_dir=args.report_dir,
            strict=args.strict,
            print_table=args.print_table,
        )
    except (FileNotFoundError, ParseError, ValueError) as e:
        logger.error("%s", e)
        print(f"error: {e}", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
