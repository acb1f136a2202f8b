"""
Stage Duration Calculation

Splits an entry's stay into stages, one per logged action. A stage runs from
its action's date to the next action's date. The last stage runs until the
reference date, or has zero length when the entry is already operative.

The on-screen action tables and the CSV export are both built from
``stage_durations``.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterator, Optional

from core.calculations.dates import days_between, parse_date
from core.calculations.status import StatusClassifier
from core.workshop.models import MaintenanceAction, MaintenanceEntry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StageDuration:
    """Elapsed days for one action's stage."""
    index: int
    action: MaintenanceAction
    end_date: date
    stage_days: int
    cumulative_days: int


class StageTimeline:
    """
    Restartable sequence of StageDuration for one entry.

    Every iteration walks the action list again; the entry is never mutated.
    """

    def __init__(
        self,
        entry: MaintenanceEntry,
        reference_date,
        classifier: Optional[StatusClassifier] = None
    ):
        self.entry = entry
        self.reference_date = reference_date
        self.classifier = classifier or StatusClassifier()

    def __len__(self) -> int:
        return len(self.entry.actions)

    def __iter__(self) -> Iterator[StageDuration]:
        entry = self.entry
        actions = entry.actions
        if not actions:
            return

        entry_date = parse_date(entry.entry_date, field="entry_date", entry_id=entry.id)
        reference = parse_date(self.reference_date, field="reference_date", entry_id=entry.id)
        is_operative = self.classifier.is_operative(actions[-1].description)

        for i, action in enumerate(actions):
            action_date = parse_date(action.date, field=f"actions[{i}].date", entry_id=entry.id)

            if i + 1 < len(actions):
                end_date = parse_date(
                    actions[i + 1].date, field=f"actions[{i + 1}].date", entry_id=entry.id
                )
            elif is_operative:
                end_date = action_date
            else:
                end_date = reference

            yield StageDuration(
                index=i,
                action=action,
                end_date=end_date,
                stage_days=days_between(action_date, end_date),
                cumulative_days=days_between(entry_date, end_date),
            )


def stage_durations(
    entry: MaintenanceEntry,
    reference_date,
    classifier: Optional[StatusClassifier] = None
) -> StageTimeline:
    """
    Per-action stage and cumulative durations for an entry.

    Args:
        entry: Maintenance entry
        reference_date: "Today" for stages still open
        classifier: Classifier whose keyword policy decides if the entry is operative

    Returns:
        StageTimeline, iterable any number of times

    Example:
        >>> for stage in stage_durations(entry, date(2025, 7, 1)):
        ...     print(stage.action.description, stage.stage_days, stage.cumulative_days)
    """
    return StageTimeline(entry, reference_date, classifier)
