# review/router.py
"""
Resource type routing.

Maps a resource type (the "Service" column) to the names of the rules that apply.
Patterns are either exact, case-sensitive type names or contain "*" wildcards that
match any substring. Wildcard patterns are unanchored: "*storageaccounts*" matches
any type containing "storageaccounts".
"""

import re
from typing import Dict, List, Mapping, Optional, Sequence

WILDCARD = "*"

# Registration order is the order rule names are returned in.
RESOURCE_TYPE_RULES: Dict[str, List[str]] = {
    "microsoft.compute/virtualmachines": ["NoAZorAS", "NoUsePremorUltOSDisk", "NoHealthyBackup"],
    "microsoft.containerservice/managedclusters": ["NoAZorAS", "LowCapacity", "NoUsePremorUltOSDisk"],
    "*storageaccounts*": ["NoV2StorageEnabled", "NoRAStorageEnabled"],
    "microsoft.network/virtualnetworkgateways": [
        "NoAzVnetGwSku",
        "NoSucceededState",
        "NoGt1Capacity",
        "NoRouteVnetGwVpnType",
        "NoGen2VnetGw",
        "NoActiveActiveVnetGw",
    ],
    "microsoft.network/publicipaddresses": ["OtherSku", "NoSucceededState", "NoAZ"],
}

_compiled: Dict[str, re.Pattern] = {}


def _wildcard_regex(pattern: str) -> re.Pattern:
    regex = _compiled.get(pattern)
    if regex is None:
        regex = re.compile(".*".join(re.escape(part) for part in pattern.split(WILDCARD)))
        _compiled[pattern] = regex
    return regex


def pattern_matches(pattern: str, resource_type: str) -> bool:
    """
    Return True if `pattern` selects `resource_type`.
    """
    if WILDCARD not in pattern:
        return pattern == resource_type
    return _wildcard_regex(pattern).search(resource_type) is not None


def resolve_rules(resource_type: str,
                  patterns: Optional[Mapping[str, Sequence[str]]] = None,
                  dedupe: bool = True) -> List[str]:
    """
    Return the rule names for `resource_type`, concatenated over every matching
    pattern in registration order.

    With dedupe, a rule reached through more than one pattern is listed once,
    at its first position.
    """
    table = RESOURCE_TYPE_RULES if patterns is None else patterns
    names: List[str] = []
    for pattern, rule_names in table.items():
        if not pattern_matches(pattern, resource_type or ""):
            continue
        for name in rule_names:
            if dedupe and name in names:
                continue
            names.append(name)
    return names
