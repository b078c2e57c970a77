"""
pharmafield.missing

Missing order items: shortfalls between what was ordered and what was
delivered, kept under the `missingItems` key.
"""

import logging
from typing import List, Optional

import pandas as pd

from pharmafield.errors import RecordNotFoundError
from pharmafield.models import MissingItem
from pharmafield.reports import export_filename, to_csv_bytes
from pharmafield.store import RecordStore

logger = logging.getLogger(__name__)

EXPORT_HEADER = ["التاريخ", "الصيدلية", "الدواء", "الكمية المفقودة", "الكمية الأصلية", "معرف المجموعة"]
NOT_AVAILABLE = "N/A"


def missing_percentage(item: MissingItem) -> Optional[float]:
    if not item.original_quantity:
        return None
    return item.quantity_missing / item.original_quantity * 100


def format_percentage(item: MissingItem) -> str:
    pct = missing_percentage(item)
    return NOT_AVAILABLE if pct is None else f"{pct:.1f}%"


def filter_missing_items(
    items: List[MissingItem],
    search: str = "",
    date: str = "",
    pharmacy: str = "",
    medicine: str = "",
) -> List[MissingItem]:
    """`search` is a case-insensitive substring on medicine or pharmacy; the rest match exactly."""
    needle = search.lower()

    def matches(item):
        if needle and needle not in (item.medicine or "").lower() and needle not in (item.pharmacy or "").lower():
            return False
        if date and item.date != date:
            return False
        if pharmacy and item.pharmacy != pharmacy:
            return False
        if medicine and item.medicine != medicine:
            return False
        return True

    return [i for i in items if matches(i)]


def missing_stats(items: List[MissingItem]) -> dict:
    by_medicine = {}
    for item in items:
        by_medicine[item.medicine] = by_medicine.get(item.medicine, 0) + item.quantity_missing
    top = max(by_medicine.items(), key=lambda kv: kv[1]) if by_medicine else None
    return {
        "total_missing_items": len(items),
        "total_missing_quantity": sum(i.quantity_missing for i in items),
        "affected_pharmacies": len({i.pharmacy for i in items}),
        "top_missing_medicine": top[0] if top else "لا يوجد",
        "top_missing_quantity": top[1] if top else 0,
    }


def export_frame(items: List[MissingItem]) -> pd.DataFrame:
    rows = [
        [i.date, i.pharmacy, i.medicine, i.quantity_missing, i.original_quantity, i.group_id]
        for i in items
    ]
    return pd.DataFrame(rows, columns=EXPORT_HEADER)


class MissingItemsTracker:
    def __init__(self, store: RecordStore):
        self.store = store

    def items(self) -> List[MissingItem]:
        return self.store.load_missing_items()

    def delete(self, item_id: str) -> List[MissingItem]:
        items = self.items()
        for i, item in enumerate(items):
            if item.id == str(item_id):
                remaining = items[:i] + items[i + 1:]
                break
        else:
            raise RecordNotFoundError(f"No missing item with id {item_id!r}")
        self.store.save_missing_items(remaining)
        logger.info("Deleted missing item %s (%s, %s)", item_id, item.medicine, item.pharmacy)
        return remaining

    def export_csv(self, items: Optional[List[MissingItem]] = None, today=None):
        """Return (filename, csv bytes) for the given items, or all stored items."""
        items = self.items() if items is None else items
        return export_filename("missing_items", today), to_csv_bytes(export_frame(items))
