"""
pharmafield.grouping

Partition flat collection/order records into per-visit groups.

A group is keyed by the record's explicit group_id, or by "{pharmacy}-{date}"
when none was assigned. Two visits to the same pharmacy on the same date
without a group_id therefore share one group.
"""

from typing import Callable, Dict, Iterable, List

from pharmafield.models import APPROVED, PENDING, REJECTED, Group, Product, Record


def group_key(record: Record) -> str:
    return record.group_id or f"{record.pharmacy}-{record.date}"


def pharmacy_date_key(record: Record) -> str:
    """Ignore explicit group ids and key on pharmacy and date only."""
    return f"{record.pharmacy}-{record.date}"


# ---------------------------
# Status policies
# ---------------------------
def last_wins(statuses: List[str]) -> str:
    return statuses[-1] if statuses else PENDING


def consensus(statuses: List[str]) -> str:
    """Pending if any member is pending, approved if all are, else rejected."""
    if not statuses or PENDING in statuses:
        return PENDING
    if all(s == APPROVED for s in statuses):
        return APPROVED
    return REJECTED


STATUS_POLICIES: Dict[str, Callable[[List[str]], str]] = {
    "last_wins": last_wins,
    "consensus": consensus,
}


def resolve_policy(policy) -> Callable[[List[str]], str]:
    if callable(policy):
        return policy
    try:
        return STATUS_POLICIES[policy]
    except KeyError:
        raise ValueError(f"Unknown group status policy: {policy!r}") from None


# ---------------------------
# Grouping
# ---------------------------
def group_records(
    records: Iterable[Record],
    key_fn: Callable[[Record], str] = group_key,
    status_policy="last_wins",
) -> Dict[str, Group]:
    """Aggregate records into groups, preserving first-seen key order.

    total_amount is the sum of line-item total_price values. A record's own
    `amount` is never read, so a record with an amount but no products adds
    nothing to its group's total.
    """
    policy = resolve_policy(status_policy)
    groups: Dict[str, Group] = {}

    for position, record in enumerate(records):
        key = key_fn(record)
        group = groups.get(key)
        if group is None:
            group = Group(group_id=key, pharmacy=record.pharmacy, date=record.date)
            groups[key] = group

        group.products.extend(record.products)
        group.total_amount += sum(p.total_price or 0 for p in record.products)
        group.record_ids.append(record.id)
        group.member_statuses.append(record.status)
        group.members.append(record)
        group.positions.append(position)

    for group in groups.values():
        group.status = policy(group.member_statuses)

    return groups


def visible_groups(groups: Dict[str, Group], status_filter: str = "all") -> List[Group]:
    """Groups with at least one product, optionally narrowed to one status."""
    return [
        g for g in groups.values()
        if g.products and (status_filter == "all" or g.status == status_filter)
    ]


def flatten(groups: Dict[str, Group]) -> List[Product]:
    return [p for g in groups.values() for p in g.products]


def grand_total(groups: Dict[str, Group]) -> float:
    return sum(g.total_amount for g in groups.values())
