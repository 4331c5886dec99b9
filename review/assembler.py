# review/assembler.py
"""
Report assembly: issue groups -> priority-ordered detail tables.
"""

import logging
from typing import List, Mapping, Optional

from review.config import DETAIL_HEADERS, ISSUE_TABLE_ID_PREFIX, NAME_FIELD
from review.models import Diagnostic, IssueGroup, IssueTable, Report, ReportEntry, ResourcePath
from review.errors import MalformedResourcePath

logger = logging.getLogger(__name__)

MIN_PATH_SEGMENTS = 9


def parse_resource_path(resource_id: Optional[str]) -> ResourcePath:
    """
    Split a resource id on "/" and pick the fixed positions:
    [2] subscription, [4] resource group, [6]/[7] type, [8] name.

    Raises MalformedResourcePath if there are fewer than 9 segments.
    """
    if resource_id is None:
        raise MalformedResourcePath(None, 0)
    parts = resource_id.split("/")
    if len(parts) < MIN_PATH_SEGMENTS:
        raise MalformedResourcePath(resource_id, len(parts))
    return ResourcePath(
        resource_id=resource_id,
        subscription=parts[2],
        resource_group=parts[4],
        resource_type=f"{parts[6]}/{parts[7]}",
        resource_name=parts[8],
    )


def build_issue_table(group: IssueGroup, table_id: str, diagnostics: List[Diagnostic],
                      strict: bool = False) -> IssueTable:
    table = IssueTable(issue_title=group.issue, table_id=table_id, headers=list(DETAIL_HEADERS))
    for record in group.resources:
        resource_id = record.get(NAME_FIELD)
        try:
            path = parse_resource_path(resource_id)
        except MalformedResourcePath as e:
            if strict:
                raise
            logger.warning("Skipping record in %r: %s", group.issue, e)
            diagnostics.append(Diagnostic(issue=group.issue, resource_id=resource_id, reason=str(e)))
            continue
        table.rows.append(path.as_row())
    return table


def assemble(groups: Mapping[str, IssueGroup], strict: bool = False) -> Report:
    """
    Build the report for `groups`.

    Table ids follow the groups' incoming order and are assigned before sorting.
    Entries are then sorted by priority; the sort is stable, so ties keep that order.

    Records with a malformed resource id are left out of their detail table and
    reported in Report.diagnostics, unless strict is set, in which case the first
    MalformedResourcePath is raised.
    """
    report = Report()
    entries: List[ReportEntry] = []
    for index, group in enumerate(groups.values()):
        table = build_issue_table(group, f"{ISSUE_TABLE_ID_PREFIX}{index}", report.diagnostics, strict=strict)
        entries.append(ReportEntry(group=group, table=table))
    report.entries = sorted(entries, key=lambda e: e.group.priority)
    return report
