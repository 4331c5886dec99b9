# review/models.py
"""
Data models used by the reviewer.

- Rules are immutable records with an attached pure predicate.
- IssueGroup collects the records that violated one rule.
- Report is the priority-ordered output consumed by the report writers.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple, Union

# One row of the inventory export, keyed by column header.
Record = Dict[str, str]

# Either plain text or a mapping of language code -> text.
LocalizedText = Union[str, Dict[str, str]]


def resolve_text(text: LocalizedText, language: str) -> str:
    """
    Return the text for `language`.

    Plain strings have no language variants and are returned as-is.
    """
    if isinstance(text, str):
        return text
    return text[language]


@dataclass(frozen=True)
class Rule:
    """
    A named best-practice check.

    Fields:
    - name: unique catalog key (e.g. "NoAZorAS")
    - issue: short title, optionally localized
    - comment: rationale, optionally localized
    - recommendation: remediation text, optionally localized; may embed HTML markup
    - priority: lower is more severe and sorts first
    - predicate: Record -> True when the record violates the rule
    """
    name: str
    issue: LocalizedText
    comment: LocalizedText
    recommendation: LocalizedText
    priority: int
    predicate: Callable[[Record], bool] = field(compare=False, repr=False)

    def is_violated_by(self, record: Record) -> bool:
        return bool(self.predicate(record))


@dataclass
class IssueGroup:
    """
    All records that violated one rule, in input row order.

    The display fields are resolved for a single language when the group is created.
    """
    rule: str
    issue: str
    comment: str
    recommendation: str
    priority: int
    resources: List[Record] = field(default_factory=list)


@dataclass(frozen=True)
class ResourcePath:
    """
    Fields extracted from a resource id such as
    /subscriptions/<sub>/resourceGroups/<rg>/providers/<provider>/<type>/<name>
    """
    resource_id: str
    subscription: str
    resource_group: str
    resource_type: str
    resource_name: str

    def as_row(self) -> Tuple[str, str, str, str, str]:
        return (
            self.resource_id,
            self.subscription,
            self.resource_group,
            self.resource_type,
            self.resource_name,
        )


@dataclass
class IssueTable:
    """
    Detail table for one issue group.

    table_id is assigned before sorting and stays with the group afterwards.
    """
    issue_title: str
    table_id: str
    headers: List[str]
    rows: List[Tuple[str, str, str, str, str]] = field(default_factory=list)

    @property
    def resource_link(self) -> str:
        return f"#{self.table_id}"


@dataclass
class Diagnostic:
    """A record left out of a detail table, with the reason."""
    issue: str
    resource_id: Optional[str]
    reason: str


@dataclass
class ReportEntry:
    group: IssueGroup
    table: IssueTable


@dataclass
class Report:
    """Priority-ordered issue groups with their detail tables."""
    entries: List[ReportEntry] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)

    def __iter__(self):
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def resource_count(self) -> int:
        return sum(len(e.group.resources) for e in self.entries)
