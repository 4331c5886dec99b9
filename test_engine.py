# test_engine.py
"""
Unit tests for the evaluation engine: record building, routing, and grouping.
"""

import pytest

from review.models import Rule
from review.catalog import RULES, flag_not_set
from review.engine import build_record, evaluate, records_from_table
from review.errors import UnknownRule

PIP_TYPE = "microsoft.network/publicipaddresses"
VM_TYPE = "microsoft.compute/virtualmachines"


def path(name, rtype="Microsoft.Network/publicIPAddresses"):
    return f"/subscriptions/SUB1/resourceGroups/RG1/providers/{rtype}/{name}"


def pip(name, **flags):
    record = {"Service": PIP_TYPE, "Name": path(name), "OtherSku": "1",
              "SucceededStateCount": "1", "AvZoneCount": "1", "NAAvZoneCount": "0"}
    record.update(flags)
    return record


def test_build_record_pairs_header_and_cells():
    assert build_record(["Service", "Name"], ["t", "n"]) == {"Service": "t", "Name": "n"}
    assert build_record(["Service", "Name"], ["t"]) == {"Service": "t"}


def test_records_from_table():
    table = [["Service", "Name", "OtherSku"], [PIP_TYPE, path("a"), "2"], [PIP_TYPE, path("b"), "1"]]
    records = records_from_table(table)
    assert len(records) == 2
    assert records[0]["OtherSku"] == "2"
    assert records_from_table([]) == []
    assert records_from_table([["Service", "Name"]]) == []


def test_end_to_end_non_recommended_sku():
    table = [["Service", "Name", "OtherSku"], [PIP_TYPE, path("pip1"), "2"]]
    groups = evaluate(records_from_table(table), "en")
    sku_title = RULES["OtherSku"].issue["en"]
    assert sku_title in groups
    assert groups[sku_title].rule == "OtherSku"
    assert groups[sku_title].resources == [records_from_table(table)[0]]


def test_end_to_end_recommended_sku_has_no_sku_group():
    table = [["Service", "Name", "OtherSku"], [PIP_TYPE, path("pip1"), "1"]]
    groups = evaluate(records_from_table(table), "en")
    assert all(g.rule != "OtherSku" for g in groups.values())


def test_fully_compliant_record_produces_no_groups():
    assert evaluate([pip("ok")], "ja") == {}


def test_same_rule_groups_records_in_row_order():
    first = pip("first", OtherSku="0")
    second = pip("second", OtherSku="2")
    groups = evaluate([first, pip("ok"), second], "ja")
    assert len(groups) == 1
    (group,) = groups.values()
    assert group.resources == [first, second]
    assert group.issue == RULES["OtherSku"].issue["ja"]
    assert group.priority == 0


def test_different_rules_same_type_make_distinct_groups():
    a = pip("a", OtherSku="0")
    b = pip("b", SucceededStateCount="0")
    groups = evaluate([a, b], "en")
    assert [g.rule for g in groups.values()] == ["OtherSku", "NoSucceededState"]
    assert [g.resources for g in groups.values()] == [[a], [b]]


def test_record_can_land_in_several_groups():
    bad = pip("bad", OtherSku="0", SucceededStateCount="0", AvZoneCount="0")
    groups = evaluate([bad], "en")
    assert [g.rule for g in groups.values()] == ["OtherSku", "NoSucceededState", "NoAZ"]
    assert all(g.resources == [bad] for g in groups.values())


def test_unrouted_types_are_ignored():
    record = {"Service": "microsoft.web/sites", "Name": path("site"), "OtherSku": "0"}
    assert evaluate([record], "en") == {}
    assert evaluate([{"Name": path("x")}], "en") == {}


def test_missing_flags_are_violations():
    record = {"Service": "microsoft.storage/storageaccounts", "Name": path("st", "Microsoft.Storage/storageAccounts")}
    groups = evaluate([record], "en")
    assert [g.rule for g in groups.values()] == ["NoV2StorageEnabled", "NoRAStorageEnabled"]


def test_language_selects_text():
    bad = pip("bad", OtherSku="0")
    (ja,) = evaluate([bad], "ja").values()
    (en,) = evaluate([bad], "en").values()
    assert ja.issue == RULES["OtherSku"].issue["ja"]
    assert en.issue == RULES["OtherSku"].issue["en"]
    assert en.comment == RULES["OtherSku"].comment["en"]
    assert en.recommendation == RULES["OtherSku"].recommendation["en"]


def test_unsupported_language_rejected():
    with pytest.raises(ValueError):
        evaluate([], "fr")


def test_plain_text_rule():
    rules = {"Flag": Rule("Flag", "Flag missing", "comment", "<b>fix</b>", 1, flag_not_set("Flag"))}
    groups = evaluate([{"Service": "t", "Flag": "0"}], "en", rules=rules, patterns={"t": ["Flag"]})
    assert groups["Flag missing"].recommendation == "<b>fix</b>"


def test_unknown_rule_is_fatal():
    with pytest.raises(UnknownRule):
        evaluate([{"Service": "t"}], "en", patterns={"t": ["Missing"]})


def test_duplicate_matches_are_counted_once_by_default():
    rules = {"Flag": Rule("Flag", "Flag missing", "c", "r", 0, flag_not_set("Flag"))}
    patterns = {"type/a": ["Flag"], "*type*": ["Flag"]}
    record = {"Service": "type/a", "Flag": "0"}
    groups = evaluate([record], "en", rules=rules, patterns=patterns)
    assert groups["Flag missing"].resources == [record]
    groups = evaluate([record], "en", rules=rules, patterns=patterns, dedupe=False)
    assert groups["Flag missing"].resources == [record, record]


def test_rules_sharing_a_title_merge_into_one_group():
    rules = {
        "A": Rule("A", "Same title", "from A", "r", 0, flag_not_set("A")),
        "B": Rule("B", "Same title", "from B", "r", 1, flag_not_set("B")),
    }
    patterns = {"t": ["A", "B"]}
    ra = {"Service": "t", "A": "0", "B": "1"}
    rb = {"Service": "t", "A": "1", "B": "0"}
    both = {"Service": "t", "A": "0", "B": "0"}
    groups = evaluate([ra, rb, both], "en", rules=rules, patterns=patterns)
    assert list(groups) == ["Same title"]
    group = groups["Same title"]
    assert group.resources == [ra, rb, both]
    assert group.rule == "A"
    assert group.comment == "from A"
