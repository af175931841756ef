# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Confidence triage for staged assignments.

Groups assignments for review:
- high-stakes: category mentions exam, test, midterm, final or project
- routine: homework, reading, quiz and assignment categories, plus
  empty and unknown ones

Low confidence is an independent flag (score below 0.6). Unscored items
are never flagged. Triage never drops or reorders items.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

LOW_CONFIDENCE_THRESHOLD = 0.6

HIGH_STAKES_KEYWORDS: tuple[str, ...] = ("exam", "test", "midterm", "final", "project")


class TriageGroup(str, Enum):
    """Review group of an assignment."""

    HIGH_STAKES = "high_stakes"
    ROUTINE = "routine"


class TriageItem(Protocol):
    """Anything shaped like a staged item."""

    type: str
    payload: dict[str, Any]
    confidence_score: float | None


@dataclass(frozen=True)
class TriageDecision:
    """Classification of one assignment."""

    group: TriageGroup
    is_low_confidence: bool

    @property
    def is_high_stakes(self) -> bool:
        return self.group is TriageGroup.HIGH_STAKES

    @property
    def is_routine(self) -> bool:
        return self.group is TriageGroup.ROUTINE


@dataclass(frozen=True)
class TriagedItem:
    """An item paired with its decision."""

    item: Any
    decision: TriageDecision


@dataclass
class TriageReport:
    """Triage result for a set of items, in input order.

    Attributes:
        entries: Every classified assignment item.
    """

    entries: list[TriagedItem] = field(default_factory=list)

    @property
    def high_stakes(self) -> list[TriagedItem]:
        return [e for e in self.entries if e.decision.is_high_stakes]

    @property
    def routine(self) -> list[TriagedItem]:
        return [e for e in self.entries if e.decision.is_routine]

    @property
    def low_confidence(self) -> list[TriagedItem]:
        return [e for e in self.entries if e.decision.is_low_confidence]


def _normalize(category: str | None) -> str:
    return (category or "").strip().lower()


def is_high_stakes(category: str | None) -> bool:
    """Check whether a category names a high-stakes deliverable."""
    normalized = _normalize(category)
    return any(keyword in normalized for keyword in HIGH_STAKES_KEYWORDS)


def is_routine(category: str | None) -> bool:
    """Check whether a category is routine.

    High-stakes wins when a category matches both groups. Empty and
    unrecognized categories are routine.
    """
    return not is_high_stakes(category)


def is_low_confidence(confidence_score: float | None) -> bool:
    """Check whether a score falls below the review threshold."""
    if confidence_score is None:
        return False
    return confidence_score < LOW_CONFIDENCE_THRESHOLD


def classify_assignment(item: TriageItem) -> TriageDecision:
    """Classify one assignment item.

    Args:
        item: Staged assignment with a payload ``category``.

    Returns:
        The item's group and low-confidence flag.
    """
    category = (item.payload or {}).get("category")
    group = TriageGroup.HIGH_STAKES if is_high_stakes(category) else TriageGroup.ROUTINE
    return TriageDecision(
        group=group,
        is_low_confidence=is_low_confidence(item.confidence_score),
    )


def triage_items(items: Iterable[TriageItem]) -> TriageReport:
    """Classify the assignment items of a run.

    Non-assignment items are ignored.

    Args:
        items: Staged items in display order.

    Returns:
        Report preserving input order within each group.
    """
    report = TriageReport()
    for item in items:
        if item.type != "assignment":
            continue
        report.entries.append(TriagedItem(item=item, decision=classify_assignment(item)))
    return report
