# review/engine.py
"""
Evaluation engine.

- Rebuilds records from a header row and data rows.
- Routes each record to its rules by resource type and runs each predicate.
- Collects violating records into one IssueGroup per rule, in input row order.
"""

import logging
from typing import Dict, List, Mapping, Optional, Sequence

from review.config import SERVICE_FIELD, SUPPORTED_LANGUAGES
from review.models import IssueGroup, Record, Rule, resolve_text
from review.catalog import RULES, get_rule
from review.router import RESOURCE_TYPE_RULES, resolve_rules

logger = logging.getLogger(__name__)


def build_record(header: Sequence[str], row: Sequence[str]) -> Record:
    """
    Pair header names with cell values. Cells beyond the header are ignored;
    columns without a cell are absent from the record.
    """
    return {column: value for column, value in zip(header, row)}


def records_from_table(table: Sequence[Sequence[str]]) -> List[Record]:
    """
    Convert a header + rows table into records. An empty table has no records.
    """
    if not table:
        return []
    header = list(table[0])
    return [build_record(header, row) for row in table[1:]]


def _new_group(rule: Rule, language: str) -> IssueGroup:
    return IssueGroup(
        rule=rule.name,
        issue=resolve_text(rule.issue, language),
        comment=resolve_text(rule.comment, language),
        recommendation=resolve_text(rule.recommendation, language),
        priority=rule.priority,
    )


def evaluate(records: Sequence[Record], language: str,
             rules: Optional[Mapping[str, Rule]] = None,
             patterns: Optional[Mapping[str, Sequence[str]]] = None,
             dedupe: bool = True) -> Dict[str, IssueGroup]:
    """
    Evaluate every record against the rules for its resource type.

    Returns issue title -> IssueGroup, in order of first violation. Rules that
    resolve to the same title share one group, which takes its comment,
    recommendation and priority from the first rule that created it. With
    dedupe, a record is added to a shared group once even if it violates
    several of its rules.

    Raises UnknownRule if a pattern names a rule the catalog does not define.
    """
    if language not in SUPPORTED_LANGUAGES:
        raise ValueError(f"Unsupported language {language!r}; expected one of {', '.join(SUPPORTED_LANGUAGES)}")
    catalog = RULES if rules is None else rules
    table = RESOURCE_TYPE_RULES if patterns is None else patterns

    groups: Dict[str, IssueGroup] = {}
    unrouted = 0
    for record in records:
        resource_type = record.get(SERVICE_FIELD) or ""
        names = resolve_rules(resource_type, table, dedupe=dedupe)
        if not names:
            unrouted += 1
            continue
        for name in names:
            rule = get_rule(name, catalog)
            if not rule.is_violated_by(record):
                continue
            issue = resolve_text(rule.issue, language)
            group = groups.get(issue)
            if group is None:
                group = _new_group(rule, language)
                groups[issue] = group
            elif group.rule != rule.name:
                logger.debug("Rule %s shares the issue title of %s; merging", rule.name, group.rule)
            if dedupe and group.resources and group.resources[-1] is record:
                continue
            group.resources.append(record)

    logger.debug("%d of %d records matched no resource type pattern", unrouted, len(records))
    logger.info("Evaluated %d records: %d issue groups", len(records), len(groups))
    return groups
