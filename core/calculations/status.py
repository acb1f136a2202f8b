"""
Workshop Status Classification

Derives the current lifecycle state of a maintenance entry from the free-text
description of its most recent action:

- Operative: "operativo" marker, unless a forced-repair keyword ("entrega") is present
- Testing: "prueba", "probar", "prueva"
- Waiting parts: "pedido", "repuesto", "compra", "pendiente", "falta", ...
- In repair: everything else, and entries with no actions

Status is never stored; it is recomputed from the action log every time.
Keyword lists live in a KeywordConfig passed to the classifier, so the
matching policy can be swapped without touching the algorithm.
"""

import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Iterable, Optional, Tuple

from core.calculations.dates import days_between, parse_date
from core.workshop.models import MaintenanceEntry

logger = logging.getLogger(__name__)


class StatusKind(str, Enum):
    """Mutually exclusive entry states, declared in priority order."""
    OPERATIVE = "operative"
    TESTING = "testing"
    WAITING_PARTS = "waiting_parts"
    IN_REPAIR = "in_repair"


@dataclass(frozen=True)
class KeywordConfig:
    """
    Keyword sets driving classification and rework detection.

    All keywords are matched as lower-case substrings of the lower-cased
    action description.
    """
    operative: Tuple[str, ...] = ("operativo",)
    forced_repair: Tuple[str, ...] = ("entrega",)
    testing: Tuple[str, ...] = ("prueba", "probar", "prueva")
    parts: Tuple[str, ...] = (
        "pedido", "repuesto", "terceros", "compra",
        "adquisición", "pendiente", "insumo", "falta",
    )
    field_test: Tuple[str, ...] = ("prueba", "campo")
    minor_service: Tuple[str, ...] = ("service", "niveles", "lavado", "lavadero")
    # When False, a forced-repair keyword only blocks the operative state
    forced_repair_overrides_all: bool = True

    def __post_init__(self):
        for name in ("operative", "forced_repair", "testing", "parts", "field_test", "minor_service"):
            keywords = tuple(kw.strip().lower() for kw in getattr(self, name) if kw and kw.strip())
            object.__setattr__(self, name, keywords)


DEFAULT_KEYWORDS = KeywordConfig()


def contains_any(description: str, keywords: Iterable[str]) -> bool:
    """True if the lower-cased description contains any of the keywords."""
    desc = (description or "").lower()
    return any(keyword in desc for keyword in keywords)


@dataclass(frozen=True)
class StatusResult:
    """Classification of one entry against a reference date."""
    status: StatusKind
    end_date: date
    total_days: int

    @property
    def is_operative(self) -> bool:
        return self.status is StatusKind.OPERATIVE

    @property
    def is_testing(self) -> bool:
        return self.status is StatusKind.TESTING

    @property
    def is_waiting_parts(self) -> bool:
        return self.status is StatusKind.WAITING_PARTS

    @property
    def is_in_repair(self) -> bool:
        return self.status is StatusKind.IN_REPAIR


class StatusClassifier:
    """Classifies entries with an injected keyword policy."""

    def __init__(self, keywords: Optional[KeywordConfig] = None):
        self.keywords = keywords or DEFAULT_KEYWORDS

    def is_forced_repair(self, description: str) -> bool:
        return contains_any(description, self.keywords.forced_repair)

    def is_operative(self, description: str) -> bool:
        """Operative marker present and not overridden by a forced-repair keyword."""
        return (
            contains_any(description, self.keywords.operative)
            and not self.is_forced_repair(description)
        )

    def status_of(self, description: str) -> StatusKind:
        """
        Classify a single action description.

        Priority: Operative > Testing > Waiting parts > In repair.
        """
        if self.is_operative(description):
            return StatusKind.OPERATIVE

        if self.keywords.forced_repair_overrides_all and self.is_forced_repair(description):
            return StatusKind.IN_REPAIR

        if contains_any(description, self.keywords.testing):
            return StatusKind.TESTING

        if contains_any(description, self.keywords.parts):
            return StatusKind.WAITING_PARTS

        return StatusKind.IN_REPAIR

    def classify(self, entry: MaintenanceEntry, reference_date) -> StatusResult:
        """
        Determine the current state of an entry and its stay so far.

        Only the last action in insertion order is considered. An operative
        entry's stay ends on the date of that action; any other entry is still
        accruing downtime, so its stay ends on ``reference_date``.

        Args:
            entry: Maintenance entry with its ordered action log
            reference_date: "Today" for the computation (injected, never read from a clock)

        Returns:
            StatusResult with status, end date and total stay days

        Raises:
            MalformedDateError: If the entry date or the last action date is unparseable
        """
        entry_date = parse_date(entry.entry_date, field="entry_date", entry_id=entry.id)

        if not entry.actions:
            return StatusResult(StatusKind.IN_REPAIR, entry_date, 0)

        last_index = len(entry.actions) - 1
        last_action = entry.actions[last_index]
        status = self.status_of(last_action.description)

        if status is StatusKind.OPERATIVE:
            end_date = parse_date(
                last_action.date, field=f"actions[{last_index}].date", entry_id=entry.id
            )
        else:
            end_date = parse_date(reference_date, field="reference_date", entry_id=entry.id)

        if end_date < entry_date:
            logger.warning(
                f"Entry {entry.id}: end date {end_date} precedes entry date {entry_date}, "
                f"stay clamped to 0 days"
            )

        return StatusResult(status, end_date, days_between(entry_date, end_date))


def classify(
    entry: MaintenanceEntry,
    reference_date,
    keywords: Optional[KeywordConfig] = None
) -> StatusResult:
    """
    Classify one entry.

    Example:
        >>> result = classify(entry, date(2025, 7, 1))
        >>> print(result.status, result.total_days)
    """
    return StatusClassifier(keywords).classify(entry, reference_date)
