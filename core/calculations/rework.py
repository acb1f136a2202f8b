"""
Rework Detection

Flags entries where equipment went back into active repair after being
declared fixed:

- an operative action is followed later by any non-operative action, or
- a field-test action ("prueba", "campo") is immediately followed by an
  action that is neither minor service ("service", "lavado", ...) nor operative.

Used for historical counts only; it never changes an entry's status.
"""

from typing import Optional, Sequence, Union

from core.calculations.status import KeywordConfig, StatusClassifier, contains_any
from core.workshop.models import MaintenanceAction, MaintenanceEntry


class ReworkDetector:
    """Rework heuristic with an injected keyword policy."""

    def __init__(self, keywords: Optional[KeywordConfig] = None):
        self.classifier = StatusClassifier(keywords)
        self.keywords = self.classifier.keywords

    def is_failed_field_test(self, previous: str, current: str) -> bool:
        """Field test followed by something other than minor service or an operative marker."""
        if not contains_any(previous, self.keywords.field_test):
            return False
        is_minor = contains_any(current, self.keywords.minor_service)
        return not is_minor and not self.classifier.is_operative(current)

    def has_rework(self, actions: Sequence[MaintenanceAction]) -> bool:
        had_operative = False
        previous = None

        for action in actions:
            desc = action.description or ""
            operative_now = self.classifier.is_operative(desc)

            if had_operative and not operative_now:
                return True
            if previous is not None and self.is_failed_field_test(previous, desc):
                return True

            had_operative = had_operative or operative_now
            previous = desc

        return False


def has_rework(
    entry: Union[MaintenanceEntry, Sequence[MaintenanceAction]],
    keywords: Optional[KeywordConfig] = None
) -> bool:
    """
    True if the entry's action log shows a regression after being fixed or field-tested.

    Example:
        >>> has_rework(entry_with(["Ingreso", "Prueba de campo", "Ajuste de válvula"]))
        True
    """
    actions = entry.actions if isinstance(entry, MaintenanceEntry) else entry
    return ReworkDetector(keywords).has_rework(actions)
