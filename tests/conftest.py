import pytest

from pharmafield.models import Product, Record
from pharmafield.store import RecordStore


@pytest.fixture
def store(tmp_path):
    return RecordStore(tmp_path / "data")


def line(medicine, quantity, price):
    return Product(medicine=medicine, quantity=quantity, price=price, total_price=quantity * price)


def record(id, pharmacy="A", date="2024-01-01", status="pending", products=None, group_id=None,
           type="order", amount=0, medicine=None):
    return Record(
        id=id,
        date=date,
        pharmacy=pharmacy,
        type=type,
        status=status,
        amount=amount,
        products=list(products or []),
        group_id=group_id,
        medicine=medicine,
    )
