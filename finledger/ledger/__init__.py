"""Ledger core: tree building, mutations, categories and load normalization."""

from finledger.ledger.categories import (
    PLACEHOLDER_ICON,
    category_usage_count,
    create_category,
    delete_category,
    find_category,
    update_category,
)
from finledger.ledger.mutations import (
    create_transaction,
    delete_transaction,
    rederive_parent_amount,
    update_transaction,
    verify_invariants,
)
from finledger.ledger.normalization import (
    DEFAULT_CATEGORIES,
    default_ledger,
    normalize_ledger,
    repair_hierarchy,
)
from finledger.ledger.tree import build_tree, children_of, flatten_tree

__all__ = [
    # Categories
    "PLACEHOLDER_ICON",
    "category_usage_count",
    "create_category",
    "delete_category",
    "find_category",
    "update_category",
    # Mutations
    "create_transaction",
    "delete_transaction",
    "rederive_parent_amount",
    "update_transaction",
    "verify_invariants",
    # Normalization
    "DEFAULT_CATEGORIES",
    "default_ledger",
    "normalize_ledger",
    "repair_hierarchy",
    # Tree
    "build_tree",
    "children_of",
    "flatten_tree",
]
