"""
pharmafield.lifecycle

pending -> approved | rejected transitions for single records and whole
groups, quantity edits on order lines, and the approved-collections total.

The pure functions return new lists and leave their input untouched;
CollectorService wraps them with load -> mutate -> save against a
RecordStore, the way the financial and order collector pages use them.
"""

import logging
import time
from dataclasses import replace
from typing import Callable, Dict, List, Optional, Tuple

from pharmafield.errors import InvalidStatusError, RecordNotFoundError, ValidationError
from pharmafield.grouping import group_key, group_records, visible_groups
from pharmafield.models import APPROVED, COLLECTION, REJECTED, STATUSES, Group, MissingItem, Record
from pharmafield.store import COLLECTIONS, ORDERS, RecordStore

logger = logging.getLogger(__name__)


def _check_status(status: str) -> None:
    if status not in STATUSES:
        raise InvalidStatusError(f"Unknown status {status!r}; expected one of {', '.join(STATUSES)}")


def _locate(records: List[Record], record_id, position: Optional[int] = None) -> List[int]:
    """Indexes a transition applies to: every record with the id, or just `position`."""
    if position is None:
        found = [i for i, r in enumerate(records) if r.id == record_id]
    elif 0 <= position < len(records) and records[position].id == record_id:
        found = [position]
    else:
        found = []
    if not found:
        raise RecordNotFoundError(f"No record with id {record_id!r}")
    return found


def set_record_status(
    records: List[Record], record_id, status: str, position: Optional[int] = None
) -> List[Record]:
    """Set `status` on the record(s) with `record_id`.

    Ids are not guaranteed unique. Without `position` every record carrying
    the id changes; with it only the record at that index does, and only if
    its id still matches.
    """
    _check_status(status)
    targets = set(_locate(records, record_id, position))
    return [replace(r, status=status) if i in targets else r for i, r in enumerate(records)]


def set_group_status(
    records: List[Record],
    key: str,
    status: str,
    key_fn: Callable[[Record], str] = group_key,
) -> List[Record]:
    """Apply `status` to every record whose derived group key equals `key`."""
    _check_status(status)
    if not any(key_fn(r) == key for r in records):
        raise RecordNotFoundError(f"No records in group {key!r}")
    return [replace(r, status=status) if key_fn(r) == key else r for r in records]


def total_collected(collections: List[Record]) -> float:
    """Sum of `amount` over approved collections. Line items are not consulted."""
    return sum(c.amount or 0 for c in collections if c.status == APPROVED)


def filter_by_status(records: List[Record], status_filter: str = "all") -> List[Record]:
    if status_filter == "all":
        return list(records)
    return [r for r in records if r.status == status_filter]


def edit_quantity(record: Record, product_index: int, quantity: int) -> Record:
    """Return a copy of `record` with one line's quantity changed and its total recomputed."""
    if quantity < 0:
        raise ValidationError(f"Quantity must be >= 0, got {quantity}")
    if not 0 <= product_index < len(record.products):
        raise RecordNotFoundError(f"Record {record.id!r} has no product at index {product_index}")

    products = [replace(p) for p in record.products]
    products[product_index].quantity = int(quantity)
    products[product_index].recompute()
    updated = replace(record, products=products)
    if record.type == COLLECTION:
        updated.amount = updated.products_total
    return updated


class CollectorService:
    """Financial collector / order collector operations over the record store."""

    def __init__(self, store: RecordStore, status_policy="last_wins"):
        self.store = store
        self.status_policy = status_policy

    # --- reads ---------------------------------------------------------

    def collections(self, status_filter: str = "all") -> List[Record]:
        return filter_by_status(self.store.load_records(COLLECTIONS), status_filter)

    def indexed_collections(self, status_filter: str = "all") -> List[Tuple[int, Record]]:
        """(position, record) pairs, so views can address duplicates individually."""
        return [
            (i, r) for i, r in enumerate(self.store.load_records(COLLECTIONS))
            if status_filter == "all" or r.status == status_filter
        ]

    def orders(self) -> List[Record]:
        return self.store.load_records(ORDERS)

    def order_groups(self, key_fn: Callable[[Record], str] = group_key) -> Dict[str, Group]:
        return group_records(self.orders(), key_fn=key_fn, status_policy=self.status_policy)

    def grouped_orders(self, status_filter: str = "all", key_fn: Callable[[Record], str] = group_key) -> List[Group]:
        return visible_groups(self.order_groups(key_fn), status_filter)

    def total_collected(self) -> float:
        return total_collected(self.store.load_records(COLLECTIONS))

    # --- transitions ---------------------------------------------------

    def set_status(self, key: str, record_id, status: str, position: Optional[int] = None) -> List[Record]:
        updated = set_record_status(self.store.load_records(key), record_id, status, position)
        self.store.save_records(key, updated)
        logger.info("%s record %s -> %s", key, record_id, status)
        return updated

    def approve(self, key: str, record_id, position: Optional[int] = None) -> List[Record]:
        return self.set_status(key, record_id, APPROVED, position)

    def reject(self, key: str, record_id, position: Optional[int] = None) -> List[Record]:
        return self.set_status(key, record_id, REJECTED, position)

    def set_group(self, group_id: str, status: str, key: str = ORDERS, key_fn=group_key) -> List[Record]:
        records = self.store.load_records(key)
        updated = set_group_status(records, group_id, status, key_fn)
        self.store.save_records(key, updated)
        changed = sum(1 for r in records if key_fn(r) == group_id)
        logger.info("%s group %s -> %s (%d record(s))", key, group_id, status, changed)
        return updated

    def approve_group(self, group_id: str, key: str = ORDERS, key_fn=group_key) -> List[Record]:
        return self.set_group(group_id, APPROVED, key, key_fn)

    def reject_group(self, group_id: str, key: str = ORDERS, key_fn=group_key) -> List[Record]:
        return self.set_group(group_id, REJECTED, key, key_fn)

    # --- quantity edits --------------------------------------------------

    def adjust_delivered_quantity(
        self,
        record_id,
        quantity: int,
        product_index: int = 0,
        key: str = ORDERS,
        position: Optional[int] = None,
    ) -> Optional[MissingItem]:
        """Lower (or raise) a line's quantity; a shortfall is logged as a missing item."""
        records = self.store.load_records(key)
        i = _locate(records, record_id, position)[0]
        record = records[i]

        original = record.products[product_index].quantity if product_index < len(record.products) else 0
        records[i] = edit_quantity(record, product_index, quantity)
        self.store.save_records(key, records)

        shortfall = original - quantity
        if shortfall <= 0:
            return None

        item = MissingItem(
            id=f"{int(time.time() * 1000)}-{record_id}-{product_index}",
            date=record.date,
            pharmacy=record.pharmacy,
            medicine=record.products[product_index].medicine,
            quantity_missing=shortfall,
            original_quantity=original,
            group_id=group_key(record),
        )
        missing = self.store.load_missing_items()
        missing.append(item)
        self.store.save_missing_items(missing)
        logger.info("Recorded %d missing unit(s) of %s for %s", shortfall, item.medicine, item.pharmacy)
        return item
