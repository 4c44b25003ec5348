"""
Tree Builder

Turns the flat, persisted record list into the two-level display tree.

The flat list is the only canonical form. Parent/child links are plain
`parent_id` lookups, so the tree is rebuilt on every read instead of being
stored.
"""

from collections.abc import Iterable, Iterator, Sequence

from finledger.models.ledger import Transaction


def _newest_first(records: Iterable[Transaction]) -> list[Transaction]:
    return sorted(records, key=lambda t: t.date, reverse=True)


def build_tree(records: Sequence[Transaction]) -> list[Transaction]:
    """
    Build the display tree from a flat record list.

    A record whose `parent_id` is missing or points at an unknown id is a
    root. So is a record whose parent is itself a sub-item, which keeps the
    tree at two levels even over corrupted data.

    Roots and each root's `sub_items` are ordered newest first.

    Aggregations count records without a `parent_id` as top-level. A root
    that surfaced here only because its link is broken (orphan, or nested
    under a sub-item) still has `parent_id` set and is left out of the
    totals. Ledgers loaded through normalize_ledger have no nested links,
    so only orphans can show this.

    Input records are not modified; returned records are copies with
    `sub_items` populated.

    Returns:
        Ordered list of root transactions
    """
    by_id = {t.id: t for t in records}
    # only top-level records can hold sub-items; deeper links surface as roots
    root_ids = {
        t.id for t in records
        if t.parent_id is None or t.parent_id not in by_id
    }
    children: dict[str, list[Transaction]] = {}
    roots: list[Transaction] = []

    for record in records:
        if record.parent_id is not None and record.parent_id in root_ids:
            children.setdefault(record.parent_id, []).append(record)
        else:
            roots.append(record)

    return [
        root.model_copy(update={
            "sub_items": [
                child.model_copy(update={"sub_items": []})
                for child in _newest_first(children.get(root.id, []))
            ]
        })
        for root in _newest_first(roots)
    ]


def flatten_tree(roots: Iterable[Transaction]) -> Iterator[Transaction]:
    """Walk a built tree parent-first, each parent followed by its sub-items."""
    for root in roots:
        yield root
        yield from root.sub_items


def children_of(records: Iterable[Transaction], parent_id: str) -> list[Transaction]:
    """Direct children of `parent_id`, in list order."""
    return [t for t in records if t.parent_id == parent_id]
