"""
pharmafield.visits

Pharmacy visit submission: turns the form's selected product lines into one
collection record and one order record per medicine, all sharing a group id.
"""

import logging
import time
from typing import Dict, List, Optional, Tuple

import numpy as np

from pharmafield.errors import ValidationError
from pharmafield.models import COLLECTION, ORDER, PENDING, Product, Record
from pharmafield.store import COLLECTIONS, ORDERS, RecordStore

logger = logging.getLogger(__name__)

PHARMACIES = [
    "صيدلية الشفاء",
    "صيدلية الدواء",
    "صيدلية النهدي",
    "صيدلية الحياة",
    "صيدلية الرعاية",
    "صيدلية السلام",
    "صيدلية الصحة",
    "صيدلية المدينة",
    "صيدلية الأمل",
    "صيدلية الوفاء",
]

MEDICINE_PRICES: Dict[str, float] = {
    "Panadol": 15,
    "Brufen": 20,
    "Nexium": 45,
    "Lipitor": 85,
    "Concor": 65,
    "Glucophage": 25,
    "Augmentin": 40,
    "Amoxil": 30,
    "Zithromax": 55,
    "Crestor": 95,
    "Ventolin": 35,
    "Lantus": 150,
    "Voltaren": 25,
    "Plavix": 120,
    "Januvia": 110,
}


def now_millis() -> int:
    return int(time.time() * 1000)


def make_lines(quantities: Dict[str, int], prices: Optional[Dict[str, float]] = None) -> List[Product]:
    """Build priced product lines from {medicine: quantity}, skipping zero quantities."""
    prices = MEDICINE_PRICES if prices is None else prices
    lines = []
    for medicine, qty in quantities.items():
        if not qty or qty <= 0:
            continue
        price = prices.get(medicine, 0)
        lines.append(Product(medicine=medicine, quantity=int(qty), price=price, total_price=price * int(qty)))
    return lines


def build_visit(
    visit_date: str,
    pharmacy: str,
    collection_lines: Optional[List[Product]] = None,
    order_lines: Optional[List[Product]] = None,
    receipt_number: Optional[str] = None,
    timestamp: Optional[int] = None,
    rng: Optional[np.random.Generator] = None,
) -> Tuple[Optional[Record], List[Record]]:
    if not visit_date or not pharmacy:
        raise ValidationError("Visit date and pharmacy are required")

    ts = now_millis() if timestamp is None else timestamp
    rng = rng or np.random.default_rng()
    group_id = f"{pharmacy}-{visit_date}-{ts}"

    collection = None
    kept = [p for p in (collection_lines or []) if p.quantity > 0]
    if kept:
        if not receipt_number:
            raise ValidationError("A receipt number is required when recording a collection")
        collection = Record(
            id=ts,
            date=visit_date,
            pharmacy=pharmacy,
            type=COLLECTION,
            status=PENDING,
            amount=sum(p.total_price for p in kept),
            receipt_number=receipt_number,
            products=kept,
            group_id=group_id,
        )

    orders = []
    for line in order_lines or []:
        if line.quantity <= 0:
            continue
        orders.append(Record(
            id=ts + float(rng.random()),
            date=visit_date,
            pharmacy=pharmacy,
            type=ORDER,
            status=PENDING,
            products=[line],
            group_id=group_id,
            medicine=line.medicine,
        ))

    return collection, orders


class VisitService:
    def __init__(self, store: RecordStore):
        self.store = store

    def submit(self, visit_date, pharmacy, collection_lines=None, order_lines=None, receipt_number=None):
        collection, orders = build_visit(
            visit_date, pharmacy, collection_lines, order_lines, receipt_number
        )
        if collection is None and not orders:
            raise ValidationError("Nothing to record: select at least one product with a quantity")

        collections = self.store.load_records(COLLECTIONS)
        existing_orders = self.store.load_records(ORDERS)
        if collection is not None:
            collections.append(collection)
        existing_orders.extend(orders)
        self.store.save_records(COLLECTIONS, collections)
        self.store.save_records(ORDERS, existing_orders)

        logger.info(
            "Visit to %s on %s recorded: %s collection, %d order line(s)",
            pharmacy, visit_date, "1" if collection else "no", len(orders),
        )
        return collection, orders
