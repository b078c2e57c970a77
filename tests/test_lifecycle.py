import pytest

from pharmafield.errors import InvalidStatusError, RecordNotFoundError, ValidationError
from pharmafield.grouping import group_key, group_records, pharmacy_date_key
from pharmafield.lifecycle import (
    CollectorService,
    edit_quantity,
    set_group_status,
    set_record_status,
    total_collected,
)
from pharmafield.store import COLLECTIONS, MISSING_ITEMS, ORDERS

from conftest import line, record


def test_set_record_status_changes_only_the_status():
    recs = [record(1, products=[line("X", 1, 2)]), record(2)]
    updated = set_record_status(recs, 1, "approved")
    assert updated[0].status == "approved"
    assert updated[0].products == recs[0].products
    assert updated[1] is recs[1]
    assert recs[0].status == "pending"


def test_set_record_status_rejects_unknown_values():
    with pytest.raises(InvalidStatusError):
        set_record_status([record(1)], 1, "done")
    with pytest.raises(RecordNotFoundError):
        set_record_status([record(1)], 99, "approved")


def test_group_transition_applies_to_every_member():
    recs = [
        record(1, group_id="g", products=[line("X", 1, 1)]),
        record(2, group_id="g", status="rejected", products=[line("Y", 1, 1)]),
        record(3, products=[line("Z", 1, 1)]),
    ]
    updated = set_group_status(recs, "g", "approved")
    assert [r.status for r in updated if group_key(r) == "g"] == ["approved", "approved"]
    assert updated[2].status == "pending"
    assert group_records(updated, status_policy="consensus")["g"].status == "approved"


def test_group_transition_on_derived_key():
    recs = [record(1, group_id="visit-1"), record(2, group_id="visit-2"), record(3, pharmacy="B")]
    updated = set_group_status(recs, "A-2024-01-01", "rejected", key_fn=pharmacy_date_key)
    assert [r.status for r in updated] == ["rejected", "rejected", "pending"]


def test_total_collected_sums_amount_of_approved_collections():
    recs = [
        record(1, type="collection", status="approved", amount=100),
        record(2, type="collection", status="pending", amount=50),
        record(3, type="collection", status="approved", amount=0, products=[line("X", 2, 10)]),
    ]
    assert total_collected(recs) == 100


def test_approving_a_group_without_amount_leaves_total_collected_alone(store):
    store.save_records(COLLECTIONS, [record(1, type="collection", products=[line("X", 2, 10)])])
    svc = CollectorService(store)
    svc.approve_group("A-2024-01-01", key=COLLECTIONS)
    assert svc.collections()[0].status == "approved"
    assert svc.total_collected() == 0


def test_edit_quantity_recomputes_total():
    rec = record(1, products=[line("X", 2, 10), line("Y", 1, 4)])
    updated = edit_quantity(rec, 0, 5)
    assert updated.products[0].total_price == 50
    assert all(p.total_price == p.price * p.quantity for p in updated.products)
    assert rec.products[0].quantity == 2


def test_edit_quantity_updates_collection_amount():
    rec = record(1, type="collection", amount=24, products=[line("X", 2, 10), line("Y", 1, 4)])
    assert edit_quantity(rec, 1, 3).amount == 32


def test_edit_quantity_validation():
    rec = record(1, products=[line("X", 2, 10)])
    with pytest.raises(ValidationError):
        edit_quantity(rec, 0, -1)
    with pytest.raises(RecordNotFoundError):
        edit_quantity(rec, 3, 1)


def test_service_persists_single_transition(store):
    store.save_records(ORDERS, [record(1.25, medicine="X", products=[line("X", 1, 1)]), record(2.5)])
    CollectorService(store).reject(ORDERS, 1.25)
    assert [r.status for r in store.load_records(ORDERS)] == ["rejected", "pending"]


def test_service_grouped_orders_filters(store):
    store.save_records(ORDERS, [
        record(1, group_id="g1", status="approved", products=[line("X", 1, 1)]),
        record(2, group_id="g2", products=[line("Y", 1, 1)]),
    ])
    svc = CollectorService(store, status_policy="last_wins")
    assert [g.group_id for g in svc.grouped_orders("pending")] == ["g2"]
    assert [g.group_id for g in svc.grouped_orders()] == ["g1", "g2"]


def test_adjust_delivered_quantity_records_shortfall(store):
    store.save_records(ORDERS, [record(7, medicine="Panadol", group_id="g", products=[line("Panadol", 10, 15)])])
    svc = CollectorService(store)

    item = svc.adjust_delivered_quantity(7, 6)

    [order] = store.load_records(ORDERS)
    assert order.products[0].quantity == 6
    assert order.products[0].total_price == 90
    assert (item.medicine, item.quantity_missing, item.original_quantity, item.group_id) == ("Panadol", 4, 10, "g")
    assert store.load_missing_items() == [item]


def test_adjust_delivered_quantity_increase_records_nothing(store):
    store.save_records(ORDERS, [record(7, medicine="X", products=[line("X", 2, 1)])])
    assert CollectorService(store).adjust_delivered_quantity(7, 5) is None
    assert not store.path_for(MISSING_ITEMS).exists()


def test_adjust_unknown_record(store):
    with pytest.raises(RecordNotFoundError):
        CollectorService(store).adjust_delivered_quantity(1, 1)


def test_service_defaults_to_last_wins(store):
    store.save_records(ORDERS, [
        record(1, group_id="g", products=[line("X", 1, 1)]),
        record(2, group_id="g", status="approved", products=[line("Y", 1, 1)]),
    ])
    assert [g.status for g in CollectorService(store).grouped_orders()] == ["approved"]


def test_repeated_ids_are_addressed_by_position(store):
    store.save_records(COLLECTIONS, [
        record(1, type="collection", amount=10),
        record(1, type="collection", amount=20),
    ])
    svc = CollectorService(store)

    svc.approve(COLLECTIONS, 1, position=1)

    assert [r.status for r in store.load_records(COLLECTIONS)] == ["pending", "approved"]
    assert svc.total_collected() == 20
    assert [(pos, r.amount) for pos, r in svc.indexed_collections("pending")] == [(0, 10)]


def test_position_must_still_hold_the_id():
    with pytest.raises(RecordNotFoundError):
        set_record_status([record(1), record(2)], 1, "approved", position=1)
    with pytest.raises(RecordNotFoundError):
        set_record_status([record(1)], 1, "approved", position=5)


def test_without_position_every_repeated_id_changes():
    updated = set_record_status([record(1), record(1), record(2)], 1, "rejected")
    assert [r.status for r in updated] == ["rejected", "rejected", "pending"]


def test_adjust_second_line_of_repeated_id(store):
    store.save_records(ORDERS, [
        record(4, products=[line("X", 3, 1)]),
        record(4, products=[line("X", 3, 1), line("Y", 5, 2)]),
    ])

    item = CollectorService(store).adjust_delivered_quantity(4, 1, product_index=1, position=1)

    first, second = store.load_records(ORDERS)
    assert first.products[0].quantity == 3
    assert [(p.quantity, p.total_price) for p in second.products] == [(3, 3), (1, 2)]
    assert (item.medicine, item.quantity_missing, item.original_quantity) == ("Y", 4, 5)


def test_total_collected_counts_records_without_a_type(store):
    store.save(COLLECTIONS, [{"id": 1, "date": "2024-01-01", "pharmacy": "A", "status": "approved", "amount": 40}])
    assert CollectorService(store).total_collected() == 40


def test_transition_keeps_unmodeled_and_empty_fields(store):
    store.save(COLLECTIONS, [{
        "id": 1, "date": "2024-01-01", "pharmacy": "A", "type": "collection", "status": "pending",
        "amount": 30, "receiptNumber": "", "notes": "left at desk",
        "products": [{"medicine": "X", "quantity": 3, "price": 10, "totalPrice": 30, "batch": "B7"}],
    }])

    CollectorService(store).approve(COLLECTIONS, 1)

    [saved] = store.load(COLLECTIONS)
    assert saved["status"] == "approved"
    assert saved["receiptNumber"] == ""
    assert saved["notes"] == "left at desk"
    assert saved["products"][0]["batch"] == "B7"
