"""Exceptions raised by the review engine."""

from typing import Optional


class ReviewError(Exception):
    """Base exception for review errors."""
    pass


class UnknownRule(ReviewError, KeyError):
    """A rule name is referenced that the catalog does not define."""

    def __init__(self, name: str):
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"Unknown rule: {self.name!r}"


class CatalogError(ReviewError):
    """The rule catalog failed its startup self-check."""
    pass


class MalformedResourcePath(ReviewError, ValueError):
    """A record's resource id does not have the expected segments."""

    def __init__(self, resource_id: Optional[str], segments: int):
        self.resource_id = resource_id
        self.segments = segments
        super().__init__(
            f"Malformed resource path {resource_id!r}: "
            f"expected at least 9 '/'-separated segments, found {segments}"
        )


class ParseError(ReviewError, ValueError):
    """The input table could not be read as header + rows."""
    pass
