"""
pharmafield.models

Dataclasses for the records the collector views work on, plus conversion
to and from the camelCase dicts stored in the persisted arrays.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

PENDING = "pending"
APPROVED = "approved"
REJECTED = "rejected"
STATUSES = (PENDING, APPROVED, REJECTED)

COLLECTION = "collection"
ORDER = "order"

STATUS_LABELS = {
    PENDING: "قيد الانتظار",
    APPROVED: "تم الموافقة",
    REJECTED: "تم الرفض",
}


def _num(value, default=0):
    # Mirrors `value || 0`: None, "", NaN and 0 all collapse to the default.
    if value is None or value == "":
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if number != number:
        return default
    return int(number) if number.is_integer() and isinstance(value, int) else number


# ---------- Line items ----------

@dataclass
class Product:
    medicine: str
    quantity: int = 0
    price: float = 0
    total_price: float = 0
    # Keys loaded from storage that the dataclass does not model; written back untouched.
    extra: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Product":
        return cls(
            medicine=raw.get("medicine") or raw.get("name") or "",
            quantity=int(_num(raw.get("quantity"))),
            price=_num(raw.get("price")),
            total_price=_num(raw.get("totalPrice")),
            extra=dict(raw),
        )

    def to_dict(self) -> Dict[str, Any]:
        raw = dict(self.extra)
        raw.update({
            "medicine": self.medicine,
            "quantity": self.quantity,
            "price": self.price,
            "totalPrice": self.total_price,
        })
        return raw

    def recompute(self) -> None:
        self.total_price = self.price * self.quantity


# ---------- Collections & orders ----------

@dataclass
class Record:
    id: float
    date: Optional[str]
    pharmacy: Optional[str]
    type: Optional[str] = COLLECTION
    status: str = PENDING
    amount: float = 0
    receipt_number: Optional[str] = None
    products: List[Product] = field(default_factory=list)
    group_id: Optional[str] = None
    # Set on flat order lines (one record per medicine).
    medicine: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Record":
        products = [Product.from_dict(p) for p in (raw.get("products") or [])]
        medicine = raw.get("medicine")
        if not products and medicine:
            line = Product.from_dict(raw)
            line.extra = {}
            products = [line]
        return cls(
            id=raw.get("id"),
            date=raw.get("date"),
            pharmacy=raw.get("pharmacy"),
            type=raw.get("type"),
            status=raw.get("status") or PENDING,
            amount=_num(raw.get("amount")),
            receipt_number=raw.get("receiptNumber"),
            products=products,
            group_id=raw.get("groupId"),
            medicine=medicine,
            extra=dict(raw),
        )

    def to_dict(self) -> Dict[str, Any]:
        raw = dict(self.extra)
        raw.update({
            "id": self.id,
            "date": self.date,
            "pharmacy": self.pharmacy,
            "status": self.status,
        })
        if self.type is not None:
            raw["type"] = self.type
        if self.group_id is not None:
            raw["groupId"] = self.group_id
        if self.medicine is not None:
            # Flat order line: the single product lives on the record itself.
            line = self.products[0] if self.products else Product(self.medicine)
            raw.update(line.to_dict())
            return raw
        raw["amount"] = self.amount
        if self.receipt_number is not None:
            raw["receiptNumber"] = self.receipt_number
        raw["products"] = [p.to_dict() for p in self.products]
        return raw

    @property
    def products_total(self) -> float:
        return sum(p.total_price or 0 for p in self.products)


@dataclass
class Group:
    """Derived aggregate of records sharing a group key. Never persisted."""
    group_id: str
    pharmacy: Optional[str]
    date: Optional[str]
    products: List[Product] = field(default_factory=list)
    total_amount: float = 0
    status: str = PENDING
    record_ids: List[float] = field(default_factory=list)
    member_statuses: List[str] = field(default_factory=list)
    members: List[Record] = field(default_factory=list)
    # Index of each member in the array that was grouped. Ids may repeat; positions do not.
    positions: List[int] = field(default_factory=list)


# ---------- Missing items ----------

@dataclass
class MissingItem:
    id: str
    date: Optional[str]
    pharmacy: Optional[str]
    medicine: str
    quantity_missing: int = 0
    original_quantity: int = 0
    group_id: Optional[str] = None

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "MissingItem":
        return cls(
            id=str(raw.get("id")),
            date=raw.get("date"),
            pharmacy=raw.get("pharmacy"),
            medicine=raw.get("medicine") or "",
            quantity_missing=int(_num(raw.get("quantityMissing"))),
            original_quantity=int(_num(raw.get("originalQuantity"))),
            group_id=raw.get("groupId"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date,
            "pharmacy": self.pharmacy,
            "medicine": self.medicine,
            "quantityMissing": self.quantity_missing,
            "originalQuantity": self.original_quantity,
            "groupId": self.group_id,
        }
