# test_router.py
"""
Unit tests for resource type routing.
"""

from review.router import RESOURCE_TYPE_RULES, pattern_matches, resolve_rules


def test_wildcard_matches_anywhere_in_type():
    assert pattern_matches("*storageaccounts*", "microsoft.storage/storageaccounts")
    assert pattern_matches("*storageaccounts*", "microsoft.classicstorage/storageaccounts")
    assert pattern_matches("*storageaccounts*", "storageaccounts")
    assert pattern_matches("*storageaccounts*", "x/storageaccounts/extra")
    assert not pattern_matches("*storageaccounts*", "microsoft.storage/StorageAccounts")


def test_wildcard_is_unanchored():
    assert pattern_matches("microsoft.*/sites", "prefix.microsoft.web/sites.suffix")


def test_wildcard_escapes_other_characters():
    assert pattern_matches("microsoft.web*", "microsoft.web/sites")
    assert not pattern_matches("microsoft.web*", "microsoftxweb/sites")


def test_exact_pattern_matches_only_exact_string():
    assert pattern_matches("microsoft.web/sites", "microsoft.web/sites")
    assert not pattern_matches("microsoft.web/sites", "microsoft.web/sites/slots")
    assert not pattern_matches("microsoft.web/sites", "Microsoft.Web/sites")
    assert not pattern_matches("microsoft.web/sites", "x.microsoft.web/sites")


def test_resolve_rules_for_known_types():
    assert resolve_rules("microsoft.network/publicipaddresses") == ["OtherSku", "NoSucceededState", "NoAZ"]
    assert resolve_rules("microsoft.classicstorage/storageaccounts") == ["NoV2StorageEnabled", "NoRAStorageEnabled"]


def test_resolve_rules_unknown_type_is_empty():
    assert resolve_rules("microsoft.web/sites") == []
    assert resolve_rules("") == []


def test_resolve_rules_concatenates_matching_patterns_in_order():
    patterns = {
        "microsoft.compute/virtualmachines": ["A", "B"],
        "*virtual*": ["C", "A"],
        "*nomatch*": ["D"],
    }
    assert resolve_rules("microsoft.compute/virtualmachines", patterns) == ["A", "B", "C"]
    assert resolve_rules("microsoft.compute/virtualmachines", patterns, dedupe=False) == ["A", "B", "C", "A"]


def test_builtin_patterns_registration_order():
    assert list(RESOURCE_TYPE_RULES)[2] == "*storageaccounts*"
