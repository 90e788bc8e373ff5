"""Sample pile records used to seed an empty store or offline cache."""
from datetime import date
from typing import List

from tos.models.record import TosRecord

_SAMPLE_ROWS = [
    (1, "ABC Mining Co", date(2024, 1, 15), "Day Shift", "BB.D.5348", "Active"),
    (2, "XYZ Contractors", date(2024, 1, 15), "Night Shift", "CC.A.5348.01", "Full"),
    (3, "DEF Industries", date(2024, 1, 16), "Morning Shift", "DD.C.5348.02", "Empty"),
    (4, "GHI Mining", date(2024, 1, 16), "Afternoon Shift", "EE.B.7621", "Processing"),
    (5, "JKL Corp", date(2024, 1, 17), "Day Shift", "FF.A.9834.05", "Maintenance"),
    (6, "MNO Services", date(2024, 1, 17), "Night Shift", "GG.D.1122", "Reserved"),
    (7, "PQR Limited", date(2024, 1, 18), "Morning Shift", "HH.C.4455", "Inactive"),
    (8, "STU Mining", date(2024, 1, 18), "Afternoon Shift", "II.A.6677.03", "Active"),
]


def sample_records() -> List[TosRecord]:
    """Fresh (unattached) copies of the sample records, ids included."""
    return [
        TosRecord(
            id=record_id,
            contractor=contractor,
            date=pile_date,
            shift=shift,
            stock_id=stock_id,
            stock_status=status,
        )
        for record_id, contractor, pile_date, shift, stock_id, status in _SAMPLE_ROWS
    ]
