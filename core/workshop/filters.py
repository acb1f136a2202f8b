"""
Entry Filtering Utilities

Search, ordering and workshop-category filters used by the tracking, history
and catalog pages. Status always comes from the StatusClassifier.
"""

from typing import Iterable, List, Optional

from core.calculations.dates import parse_date
from core.calculations.status import StatusClassifier
from core.workshop.models import Equipment, EquipmentIndex, MaintenanceEntry, resolve_equipment

WORKSHOP_CATEGORIES = ('pesados', 'camiones', 'livianos', 'otros')
TRUCK_KEYWORDS = ('camión', 'camion', 'colectivo')


def workshop_category(entry: MaintenanceEntry, equipment_index: EquipmentIndex) -> str:
    """
    Workshop section for an entry, derived from the interno prefix.

    - "E..." internos are heavy equipment ("pesados")
    - "V..." internos are trucks ("camiones") when type/brand/model mention
      a truck or bus, light vehicles ("livianos") otherwise
    - anything else is "otros"
    """
    interno = (entry.equipment_id or "").upper()

    if interno.startswith('E'):
        return 'pesados'

    if interno.startswith('V'):
        eq = resolve_equipment(equipment_index, entry)
        desc = eq.description.lower() if eq else ""
        if any(keyword in desc for keyword in TRUCK_KEYWORDS):
            return 'camiones'
        return 'livianos'

    return 'otros'


def matches_search(entry: MaintenanceEntry, equipment_index: EquipmentIndex, term: str) -> bool:
    """
    Case-insensitive search across an entry, its equipment and its actions.

    An empty term matches everything.
    """
    if not term or not term.strip():
        return True
    term = term.strip().lower()

    eq = resolve_equipment(equipment_index, entry)
    fields = [
        entry.equipment_id,
        entry.fault_report,
        entry.assigned_work,
        eq.type if eq else None,
        eq.brand if eq else None,
    ]
    for action in entry.actions:
        fields.append(action.description)
        fields.append(action.performed_by)

    return any(term in value.lower() for value in fields if value)


def tracking_order(
    entries: Iterable[MaintenanceEntry],
    reference_date,
    classifier: Optional[StatusClassifier] = None
) -> List[MaintenanceEntry]:
    """
    Order entries for the tracking list.

    Entries still in the workshop come first, then operative ones; within each
    group the most recent entry date comes first. The input is not modified.
    """
    classifier = classifier or StatusClassifier()

    def sort_key(entry: MaintenanceEntry):
        result = classifier.classify(entry, reference_date)
        entry_date = parse_date(entry.entry_date, field="entry_date", entry_id=entry.id)
        return (result.is_operative, -entry_date.toordinal())

    return sorted(entries, key=sort_key)


def in_workshop(
    entries: Iterable[MaintenanceEntry],
    reference_date,
    classifier: Optional[StatusClassifier] = None
) -> List[MaintenanceEntry]:
    """Entries that are not operative yet."""
    classifier = classifier or StatusClassifier()
    return [e for e in entries if not classifier.classify(e, reference_date).is_operative]


def operative_history(
    entries: Iterable[MaintenanceEntry],
    equipment_index: EquipmentIndex,
    reference_date,
    term: str = "",
    category: str = "all",
    classifier: Optional[StatusClassifier] = None
) -> List[MaintenanceEntry]:
    """
    Operative entries filtered by search term and workshop category.

    Args:
        entries: All maintenance entries
        equipment_index: Equipment lookup
        reference_date: "Today"
        term: Free-text search term
        category: "all" or one of WORKSHOP_CATEGORIES
        classifier: Status classifier

    Raises:
        ValueError: If category is not recognized
    """
    if category != 'all' and category not in WORKSHOP_CATEGORIES:
        raise ValueError(
            f"Unknown workshop category: '{category}'. "
            f"Valid options: 'all', {', '.join(repr(c) for c in WORKSHOP_CATEGORIES)}"
        )
    classifier = classifier or StatusClassifier()

    result = []
    for entry in entries:
        if not classifier.classify(entry, reference_date).is_operative:
            continue
        if not matches_search(entry, equipment_index, term):
            continue
        if category != 'all' and workshop_category(entry, equipment_index) != category:
            continue
        result.append(entry)
    return result


def filter_equipment(equipment: Iterable[Equipment], term: str) -> List[Equipment]:
    """Catalog search on interno, brand and type."""
    if not term or not term.strip():
        return list(equipment)
    term = term.strip().lower()
    return [
        eq for eq in equipment
        if term in eq.id.lower() or term in eq.brand.lower() or term in eq.type.lower()
    ]
