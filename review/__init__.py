"""
Rule evaluation and grouping for cloud resource inventory exports.

run_review is the pipeline entry point: records -> issue groups -> report.
"""

from typing import Sequence

from review.models import Record, Report
from review.assembler import assemble, parse_resource_path
from review.catalog import RULES, get_rule, validate_catalog
from review.engine import evaluate, records_from_table
from review.errors import CatalogError, MalformedResourcePath, ParseError, ReviewError, UnknownRule
from review.router import RESOURCE_TYPE_RULES, pattern_matches, resolve_rules


def run_review(records: Sequence[Record], language: str, strict: bool = False) -> Report:
    """
    Check the built-in catalog, evaluate `records` and assemble the report.
    """
    validate_catalog(RULES, RESOURCE_TYPE_RULES)
    groups = evaluate(records, language)
    return assemble(groups, strict=strict)


__all__ = [
    "RULES",
    "RESOURCE_TYPE_RULES",
    "CatalogError",
    "MalformedResourcePath",
    "ParseError",
    "ReviewError",
    "UnknownRule",
    "assemble",
    "evaluate",
    "get_rule",
    "parse_resource_path",
    "pattern_matches",
    "records_from_table",
    "resolve_rules",
    "run_review",
    "validate_catalog",
]
