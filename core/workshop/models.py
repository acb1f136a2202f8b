"""
Workshop Data Models

Equipment catalog records, maintenance entries with their ordered action log,
and the optional technical report attached to an entry.

Records are built from database rows through ``from_record``. Date fields are
kept as delivered (date objects or ``YYYY-MM-DD`` strings); the status engine
parses them when it needs them.
"""

import re
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

DateLike = Union[date, str]

DEFAULT_PERFORMED_BY = "Taller"

REPORT_FIELDS = (
    "motor",
    "sistema_hidraulico",
    "sistema_electrico",
    "sistema_neumatico",
    "estructura",
    "cabina",
    "tren_rodante",
    "elementos_desgaste",
    "componentes_especificos",
    "observaciones",
)

COMPLETED_SUFFIX = re.compile(r"\s*\[COMPLETADO - .*?\]$")


@dataclass
class Equipment:
    """Master catalog record for one equipment unit (interno)."""
    id: str
    type: str = ""
    brand: str = ""
    model: str = ""
    hours: int = 0
    replacement_value: float = 0.0
    depreciation_factor: Optional[float] = 0.8
    general_comment: Optional[str] = None

    def __post_init__(self):
        if self.hours is not None and self.hours < 0:
            raise ValueError(f"Equipment '{self.id}' has negative hours: {self.hours}")
        if self.replacement_value is not None and self.replacement_value < 0:
            raise ValueError(
                f"Equipment '{self.id}' has negative replacement value: {self.replacement_value}"
            )

    @property
    def description(self) -> str:
        """Type, brand and model joined for search and categorization."""
        return " ".join(part for part in (self.type, self.brand, self.model) if part)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Equipment":
        """Build from an ``equipos`` row."""
        demerito = record.get("demerito")
        return cls(
            id=str(record["id"]),
            type=record.get("tipo") or "",
            brand=record.get("marca") or "",
            model=record.get("modelo") or "",
            hours=int(record.get("horas") or 0),
            replacement_value=float(record.get("valor_nuevo") or 0),
            depreciation_factor=float(demerito) if demerito is not None else None,
            general_comment=record.get("comentario_general"),
        )

    def to_record(self) -> Dict[str, Any]:
        """Convert back to an ``equipos`` row."""
        return {
            "id": self.id,
            "tipo": self.type,
            "marca": self.brand,
            "modelo": self.model,
            "horas": self.hours,
            "valor_nuevo": self.replacement_value,
            "demerito": self.depreciation_factor,
            "comentario_general": self.general_comment,
        }


@dataclass
class MaintenanceAction:
    """One logged step in an entry's history."""
    id: str
    entry_id: str
    description: str
    date: DateLike
    performed_by: str = DEFAULT_PERFORMED_BY

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "MaintenanceAction":
        """Build from an ``acciones_taller`` row."""
        return cls(
            id=str(record["id"]),
            entry_id=str(record["ingreso_id"]),
            description=record.get("descripcion") or "",
            date=record.get("fecha_accion"),
            performed_by=record.get("responsable") or DEFAULT_PERFORMED_BY,
        )


@dataclass
class TechnicalReport:
    """
    Structured inspection checklist, at most one per entry.

    Each field is free text. A field is marked as completed by appending
    ``[COMPLETADO - dd/mm/yyyy]``.
    """
    entry_id: str
    fields: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        unknown = set(self.fields) - set(REPORT_FIELDS)
        if unknown:
            raise ValueError(f"Unknown technical report fields: {sorted(unknown)}")

    def get(self, name: str) -> str:
        return self.fields.get(name) or ""

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "TechnicalReport":
        """Build from an ``informe_taller`` row."""
        return cls(
            entry_id=str(record["ingreso_id"]),
            fields={name: record.get(name) or "" for name in REPORT_FIELDS},
        )

    def to_record(self) -> Dict[str, Any]:
        record = {"ingreso_id": self.entry_id}
        record.update({name: self.get(name) for name in REPORT_FIELDS})
        return record


def is_completed(text: str) -> bool:
    """True if a report field carries the completed suffix."""
    return bool(COMPLETED_SUFFIX.search(text or ""))


def toggle_completed(text: str, on: date) -> str:
    """Add the completed suffix dated ``on``, or remove it if already present."""
    text = text or ""
    if is_completed(text):
        return COMPLETED_SUFFIX.sub("", text).strip()
    return f"{text.strip()} [COMPLETADO - {on.strftime('%d/%m/%Y')}]"


@dataclass
class MaintenanceEntry:
    """
    One workshop visit for one equipment unit.

    ``actions`` is kept in insertion order; the last action decides the
    current status regardless of its date. ``equipment_id`` is a weak
    reference, the equipment may have been deleted from the catalog.
    """
    id: str
    equipment_id: str
    entry_date: DateLike
    fault_report: str = ""
    assigned_work: Optional[str] = None
    comment: Optional[str] = None
    actions: List[MaintenanceAction] = field(default_factory=list)
    departure_date_estimate: Optional[DateLike] = None
    technical_report: Optional[TechnicalReport] = None

    @property
    def last_action(self) -> Optional[MaintenanceAction]:
        return self.actions[-1] if self.actions else None

    @classmethod
    def from_record(
        cls,
        record: Mapping[str, Any],
        actions: Iterable[MaintenanceAction] = (),
        technical_report: Optional[TechnicalReport] = None
    ) -> "MaintenanceEntry":
        """Build from an ``ingresos_taller`` row plus its actions."""
        return cls(
            id=str(record["id"]),
            equipment_id=str(record.get("equipo_id") or ""),
            entry_date=record.get("fecha_ingreso"),
            fault_report=record.get("informe_fallas") or "",
            assigned_work=record.get("obra_asignada"),
            comment=record.get("observaciones"),
            actions=list(actions),
            departure_date_estimate=record.get("fecha_salida"),
            technical_report=technical_report,
        )


EquipmentIndex = Mapping[str, Equipment]


def build_equipment_index(
    equipment: Union[EquipmentIndex, Iterable[Equipment], None]
) -> EquipmentIndex:
    """
    Return a mapping from interno to Equipment.

    Accepts an existing mapping (returned unchanged) or any iterable of
    Equipment records.
    """
    if equipment is None:
        return {}
    if isinstance(equipment, Mapping):
        return equipment
    return {eq.id: eq for eq in equipment}


def resolve_equipment(index: EquipmentIndex, entry: MaintenanceEntry) -> Optional[Equipment]:
    """Equipment referenced by an entry, or None if it is not in the catalog."""
    return index.get(entry.equipment_id)
