"""
Lifecycle of a monetization configuration set.

A set is never edited once published: a new version is added naming its
predecessor, and the old one becomes SUPERSEDED but stays on disk so
historical breakdowns can be re-derived.
"""

from enum import Enum, unique


@unique
class ConfigStatus(str, Enum):
    DRAFT = "draft"
    REVIEWED = "reviewed"
    APPROVED = "approved"
    PUBLISHED = "published"
    SUPERSEDED = "superseded"


_NEXT_STATES: dict[ConfigStatus, frozenset[ConfigStatus]] = {
    ConfigStatus.DRAFT: frozenset({ConfigStatus.REVIEWED}),
    ConfigStatus.REVIEWED: frozenset({ConfigStatus.APPROVED, ConfigStatus.DRAFT}),
    ConfigStatus.APPROVED: frozenset({ConfigStatus.PUBLISHED, ConfigStatus.DRAFT}),
    ConfigStatus.PUBLISHED: frozenset({ConfigStatus.SUPERSEDED}),
    ConfigStatus.SUPERSEDED: frozenset(),
}


def validate_transition(current: ConfigStatus, target: ConfigStatus) -> bool:
    """True when a set in ``current`` may move to ``target``."""
    return target in _NEXT_STATES[current]
