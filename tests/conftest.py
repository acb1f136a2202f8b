"""Shared fixtures: a small equipment catalog and entry builders."""

from datetime import date

import pytest

from core.workshop.models import Equipment, MaintenanceAction, MaintenanceEntry

REFERENCE_DATE = date(2025, 7, 1)


def make_entry(entry_id, equipment_id, entry_date, actions):
    """Build an entry from (date, description) pairs."""
    entry = MaintenanceEntry(
        id=entry_id,
        equipment_id=equipment_id,
        entry_date=entry_date,
        fault_report="Ruidos anormales en el motor",
    )
    for i, (action_date, description) in enumerate(actions):
        entry.actions.append(MaintenanceAction(
            id=f"{entry_id}-a{i}",
            entry_id=entry_id,
            description=description,
            date=action_date,
            performed_by="Juan Pérez",
        ))
    return entry


@pytest.fixture
def reference_date():
    return REFERENCE_DATE


@pytest.fixture
def catalog():
    return [
        Equipment('E1402', 'EXCAVADORA S/ORUGAS 30 ≤ Tn < 40', 'VOLVO', 'EC290 BLC PRIME',
                  11882, 320000, 0.75),
        Equipment('E1464', 'EXCAVADORA S/ORUGAS 20 ≤ Tn < 30', 'KOMATSU', 'PC240LC-8',
                  5744, 240000, 0.9),
        Equipment('V1169', 'CAMION VOLCADOR ≥ 15 m3 6x4', 'IVECO', 'TRAKKER HI LAND 410T44',
                  3041, 210000, 0.95),
        Equipment('V0800', 'PICKUP 4X4', 'TOYOTA', 'HILUX', 1200, 45000, None),
        Equipment('A0007', 'ACOPLADO PLAYO DE TIRO 15 ≥ 35 Ton', 'PRATTI FRUENHAUF', 'TC-SP6011',
                  0, 55000, 0.75),
    ]


@pytest.fixture
def equipment_index(catalog):
    return {eq.id: eq for eq in catalog}


@pytest.fixture
def entries():
    return [
        make_entry('1', 'E1402', '2025-05-12', [
            ('2025-05-12', 'Ingreso a taller - Diagnóstico inicial'),
            ('2025-06-15', 'Operativo'),
        ]),
        make_entry('2', 'E1464', '2025-06-10', [
            ('2025-06-11', 'Revisión de sellos y retenes'),
            ('2025-06-14', 'Pedido de repuestos a terceros'),
        ]),
        make_entry('3', 'V1169', '2025-06-20', [
            ('2025-06-21', 'Cambio de aceite motor y filtros de aire'),
            ('2025-06-22', 'Operativo'),
        ]),
        make_entry('4', 'E1402', '2025-06-25', [
            ('2025-06-25', 'Ingreso'),
            ('2025-06-27', 'Prueba de campo'),
        ]),
    ]
