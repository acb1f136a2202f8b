"""
Dashboard Aggregation

Rolls every maintenance entry up into workshop KPIs in a single pass:

- entry counts per status (operative / testing / waiting parts / in repair)
- average stay (Σ stay days / total entries, 2 decimals)
- total estimated downtime loss
- historical reworks and reworks still in the workshop
- average wait after a parts request (1 decimal)
- entry counts per equipment type (top 5)
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Optional, Tuple, Union

import pandas as pd

from core.calculations.dates import days_between, parse_date
from core.calculations.loss import estimate_loss
from core.calculations.rework import ReworkDetector
from core.calculations.status import KeywordConfig, StatusClassifier, StatusKind, contains_any
from core.workshop.models import (
    Equipment,
    EquipmentIndex,
    MaintenanceEntry,
    build_equipment_index,
    resolve_equipment,
)

logger = logging.getLogger(__name__)

DEFAULT_TOP_TYPES = 5


def round_half_up(value: float, step: str) -> float:
    """Round to the given step (e.g. "0.01"), exact halves away from zero."""
    return float(Decimal(str(value)).quantize(Decimal(step), rounding=ROUND_HALF_UP))


@dataclass
class DashboardStats:
    """Workshop KPIs for one snapshot of entries and catalog."""
    total_entries: int = 0
    status_counts: Dict[StatusKind, int] = field(
        default_factory=lambda: {status: 0 for status in StatusKind}
    )
    total_stay_days: int = 0
    average_stay: float = 0.0
    total_estimated_loss: float = 0.0
    historical_reworks: int = 0
    reworks_in_workshop: int = 0
    average_parts_wait: float = 0.0
    parts_wait_segments: int = 0
    type_breakdown: List[Tuple[str, int]] = field(default_factory=list)

    @property
    def operative_count(self) -> int:
        return self.status_counts[StatusKind.OPERATIVE]

    @property
    def currently_in_workshop(self) -> int:
        """Entries that are not operative yet."""
        return self.total_entries - self.operative_count

    def to_dict(self) -> Dict:
        """Convert to dictionary for easy display"""
        return {
            'total_entries': self.total_entries,
            'currently_in_workshop': self.currently_in_workshop,
            'operative': self.status_counts[StatusKind.OPERATIVE],
            'testing': self.status_counts[StatusKind.TESTING],
            'waiting_parts': self.status_counts[StatusKind.WAITING_PARTS],
            'in_repair': self.status_counts[StatusKind.IN_REPAIR],
            'average_stay': self.average_stay,
            'total_estimated_loss': self.total_estimated_loss,
            'historical_reworks': self.historical_reworks,
            'reworks_in_workshop': self.reworks_in_workshop,
            'average_parts_wait': self.average_parts_wait,
        }


class DashboardAggregator:
    """Aggregates entries into DashboardStats using a shared classifier."""

    def __init__(
        self,
        classifier: Optional[StatusClassifier] = None,
        top_n: int = DEFAULT_TOP_TYPES
    ):
        self.classifier = classifier or StatusClassifier()
        self.rework_detector = ReworkDetector(self.classifier.keywords)
        self.top_n = top_n

    def parts_wait_days(self, entry: MaintenanceEntry) -> List[int]:
        """
        Days between each parts-request action and the action after it.

        Parts requests without a following action are still open and not counted.
        """
        actions = entry.actions
        waits = []
        for i in range(len(actions) - 1):
            if contains_any(actions[i].description, self.classifier.keywords.parts):
                start = parse_date(actions[i].date, field=f"actions[{i}].date", entry_id=entry.id)
                end = parse_date(
                    actions[i + 1].date, field=f"actions[{i + 1}].date", entry_id=entry.id
                )
                waits.append(days_between(start, end))
        return waits

    def aggregate(
        self,
        entries: Iterable[MaintenanceEntry],
        equipment: Union[EquipmentIndex, Iterable[Equipment], None],
        reference_date
    ) -> DashboardStats:
        """
        Compute dashboard statistics.

        Args:
            entries: Maintenance entries, in any order
            equipment: Equipment index (id -> Equipment) or iterable of Equipment
            reference_date: "Today" for entries still in the workshop

        Returns:
            DashboardStats

        Raises:
            MalformedDateError: If any entry carries an unparseable date
        """
        index = build_equipment_index(equipment)
        stats = DashboardStats()
        type_counts = Counter()
        total_parts_days = 0
        unresolved = 0

        for entry in entries:
            result = self.classifier.classify(entry, reference_date)
            eq = resolve_equipment(index, entry)

            stats.total_entries += 1
            stats.status_counts[result.status] += 1
            stats.total_stay_days += result.total_days
            stats.total_estimated_loss += estimate_loss(result.total_days, eq)

            if self.rework_detector.has_rework(entry.actions):
                stats.historical_reworks += 1
                if not result.is_operative:
                    stats.reworks_in_workshop += 1

            waits = self.parts_wait_days(entry)
            total_parts_days += sum(waits)
            stats.parts_wait_segments += len(waits)

            if eq is not None:
                type_counts[eq.type] += 1
            else:
                unresolved += 1

        if unresolved:
            logger.debug(f"{unresolved} entries reference equipment missing from the catalog")

        if stats.total_entries > 0:
            stats.average_stay = round_half_up(stats.total_stay_days / stats.total_entries, "0.01")
        if stats.parts_wait_segments > 0:
            stats.average_parts_wait = round_half_up(total_parts_days / stats.parts_wait_segments, "0.1")

        # Counter.most_common keeps first-seen order among equal counts
        stats.type_breakdown = type_counts.most_common(self.top_n)
        return stats


def aggregate(
    entries: Iterable[MaintenanceEntry],
    equipment: Union[EquipmentIndex, Iterable[Equipment], None],
    reference_date,
    keywords: Optional[KeywordConfig] = None,
    top_n: int = DEFAULT_TOP_TYPES
) -> DashboardStats:
    """
    Compute dashboard statistics with the given keyword policy.

    Example:
        >>> stats = aggregate(entries, equipment, date(2025, 7, 1))
        >>> print(f"Average stay: {stats.average_stay} d.")
    """
    return DashboardAggregator(StatusClassifier(keywords), top_n).aggregate(
        entries, equipment, reference_date
    )


STATUS_CHART_ORDER = (
    StatusKind.IN_REPAIR,
    StatusKind.WAITING_PARTS,
    StatusKind.TESTING,
    StatusKind.OPERATIVE,
)


def status_breakdown_frame(stats: DashboardStats) -> pd.DataFrame:
    """Status counts as a DataFrame with columns status, count."""
    return pd.DataFrame(
        [{'status': status, 'count': stats.status_counts[status]} for status in STATUS_CHART_ORDER],
        columns=['status', 'count']
    )


def type_breakdown_frame(stats: DashboardStats) -> pd.DataFrame:
    """Top equipment types as a DataFrame with columns type, count."""
    return pd.DataFrame(stats.type_breakdown, columns=['type', 'count'])
