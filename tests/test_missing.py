import csv
import io
from datetime import date

import pytest

from pharmafield.errors import RecordNotFoundError
from pharmafield.missing import (
    EXPORT_HEADER,
    MissingItemsTracker,
    filter_missing_items,
    format_percentage,
    missing_percentage,
    missing_stats,
)
from pharmafield.models import MissingItem


def item(id, pharmacy="صيدلية الشفاء", medicine="Panadol", date="2024-01-01", missing=2, original=8):
    return MissingItem(id=id, date=date, pharmacy=pharmacy, medicine=medicine,
                       quantity_missing=missing, original_quantity=original, group_id="g")


@pytest.fixture
def items():
    return [
        item("1"),
        item("2", pharmacy="صيدلية النهدي", medicine="Brufen", missing=5, original=10),
        item("3", medicine="Nexium", date="2024-01-02", missing=1, original=0),
    ]


def test_search_is_case_insensitive_substring(items):
    assert [i.id for i in filter_missing_items(items, search="pana")] == ["1"]
    assert [i.id for i in filter_missing_items(items, search="النهدي")] == ["2"]


def test_exact_filters(items):
    assert [i.id for i in filter_missing_items(items, date="2024-01-02")] == ["3"]
    assert [i.id for i in filter_missing_items(items, pharmacy="صيدلية الشفاء")] == ["1", "3"]
    assert [i.id for i in filter_missing_items(items, medicine="Brufen")] == ["2"]
    assert filter_missing_items(items, medicine="Bru") == []
    assert filter_missing_items(items) == items


def test_percentage_guards_zero_original(items):
    assert missing_percentage(items[0]) == 25
    assert missing_percentage(items[2]) is None
    assert format_percentage(items[0]) == "25.0%"
    assert format_percentage(items[2]) == "N/A"


def test_stats(items):
    stats = missing_stats(items)
    assert stats["total_missing_items"] == 3
    assert stats["total_missing_quantity"] == 8
    assert stats["affected_pharmacies"] == 2
    assert (stats["top_missing_medicine"], stats["top_missing_quantity"]) == ("Brufen", 5)
    assert missing_stats([])["top_missing_medicine"] == "لا يوجد"


def test_delete_removes_exactly_one_and_persists(store, items):
    store.save_missing_items(items)
    tracker = MissingItemsTracker(store)

    remaining = tracker.delete("2")

    assert [i.id for i in remaining] == ["1", "3"]
    assert tracker.items() == remaining
    assert filter_missing_items(tracker.items(), search="panadol") == [items[0]]


def test_delete_unknown_id(store, items):
    store.save_missing_items(items)
    with pytest.raises(RecordNotFoundError):
        MissingItemsTracker(store).delete("nope")
    assert len(store.load_missing_items()) == 3


def test_export_csv(store, items):
    store.save_missing_items(items)
    filename, data = MissingItemsTracker(store).export_csv(today=date(2024, 5, 6))
    assert filename == "missing_items_2024-05-06.csv"
    rows = list(csv.reader(io.StringIO(data.decode("utf-8"))))
    assert rows[0] == EXPORT_HEADER
    assert rows[1] == ["2024-01-01", "صيدلية الشفاء", "Panadol", "2", "8", "g"]
    assert len(rows) == 4
