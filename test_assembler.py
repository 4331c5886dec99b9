# test_assembler.py
"""
Unit tests for report assembly: resource id extraction, table ids, and ordering.
"""

import pytest

from review.models import IssueGroup
from review.assembler import assemble, parse_resource_path
from review.errors import MalformedResourcePath

VM_ID = "/subscriptions/SUB1/resourceGroups/RG1/providers/Microsoft.Compute/virtualMachines/VM1"


def group(issue, priority, *names):
    return IssueGroup(
        rule=issue,
        issue=issue,
        comment="",
        recommendation="",
        priority=priority,
        resources=[{"Name": f"/subscriptions/S/resourceGroups/G/providers/P/t/{n}"} for n in names],
    )


def test_parse_resource_path():
    p = parse_resource_path(VM_ID)
    assert p.subscription == "SUB1"
    assert p.resource_group == "RG1"
    assert p.resource_type == "Microsoft.Compute/virtualMachines"
    assert p.resource_name == "VM1"
    assert p.as_row() == (VM_ID, "SUB1", "RG1", "Microsoft.Compute/virtualMachines", "VM1")


def test_parse_resource_path_ignores_trailing_segments():
    p = parse_resource_path(VM_ID + "/extensions/ext1")
    assert p.resource_name == "VM1"


@pytest.mark.parametrize("resource_id", [None, "", "vm1", "/subscriptions/SUB1/resourceGroups/RG1"])
def test_parse_resource_path_malformed(resource_id):
    with pytest.raises(MalformedResourcePath) as exc:
        parse_resource_path(resource_id)
    assert exc.value.resource_id == resource_id


def test_report_is_stably_sorted_by_priority():
    groups = {g.issue: g for g in [group("p2", 2, "a"), group("p0-first", 0, "b"),
                                   group("p1", 1, "c"), group("p0-second", 0, "d")]}
    report = assemble(groups)
    assert [e.group.issue for e in report] == ["p0-first", "p0-second", "p1", "p2"]


def test_table_ids_assigned_before_sorting():
    groups = {g.issue: g for g in [group("p2", 2, "a"), group("p0", 0, "b")]}
    report = assemble(groups)
    assert [e.table.table_id for e in report] == ["issue-table-1", "issue-table-0"]
    assert report.entries[0].table.resource_link == "#issue-table-1"
    assert report.entries[0].table.issue_title == "p0"


def test_detail_rows_and_headers():
    report = assemble({"x": group("x", 0, "vm1", "vm2")})
    table = report.entries[0].table
    assert table.headers == ["ResourceId", "Subscription", "ResourceGroup", "ResourceType", "Resource"]
    assert [row[4] for row in table.rows] == ["vm1", "vm2"]
    assert table.rows[0][1:4] == ("S", "G", "P/t")
    assert report.resource_count == 2


def test_malformed_record_is_skipped_with_diagnostic():
    g = group("x", 0, "vm1")
    g.resources.insert(0, {"Name": "bad/path"})
    g.resources.append({"Service": "no-name"})
    report = assemble({"x": g})
    assert [row[4] for row in report.entries[0].table.rows] == ["vm1"]
    assert [d.resource_id for d in report.diagnostics] == ["bad/path", None]
    assert all(d.issue == "x" for d in report.diagnostics)


def test_malformed_record_does_not_affect_other_groups():
    bad = group("bad", 0)
    bad.resources.append({"Name": "short"})
    report = assemble({"bad": bad, "good": group("good", 1, "vm1")})
    assert len(report) == 2
    assert report.entries[0].table.rows == []
    assert len(report.entries[1].table.rows) == 1


def test_strict_mode_raises():
    g = group("x", 0)
    g.resources.append({"Name": "short"})
    with pytest.raises(MalformedResourcePath):
        assemble({"x": g}, strict=True)


def test_empty_groups_make_empty_report():
    report = assemble({})
    assert len(report) == 0
    assert report.diagnostics == []
