"""Tests for category operations and the deletion guard."""

import pytest

from finledger.errors import (
    CategoryInUseError,
    DuplicateCategoryError,
    NotFoundError,
    ValidationError,
)
from finledger.ledger import (
    DEFAULT_CATEGORIES,
    PLACEHOLDER_ICON,
    build_tree,
    category_usage_count,
    create_category,
    delete_category,
    find_category,
    update_category,
)


@pytest.fixture
def categories():
    return list(DEFAULT_CATEGORIES)


class TestCreateCategory:
    """Tests for create_category."""

    def test_appends_with_placeholder_icon(self, categories):
        updated, created = create_category(categories, "  Pets ")
        assert created.name == "Pets"
        assert created.icon == PLACEHOLDER_ICON
        assert updated[-1] == created
        assert len(categories) == len(DEFAULT_CATEGORIES)

    def test_keeps_given_icon(self, categories):
        _, created = create_category(categories, "Pets", icon="paw")
        assert created.icon == "paw"

    def test_rejects_case_insensitive_duplicate(self, categories):
        """Test that 'groceries' clashes with 'Groceries'."""
        with pytest.raises(DuplicateCategoryError):
            create_category(categories, "groceries")

    def test_duplicate_is_a_validation_error(self, categories):
        with pytest.raises(ValidationError) as exc_info:
            create_category(categories, "RENT")
        assert exc_info.value.issues[0].issue_type == "duplicate"

    def test_rejects_blank_name(self, categories):
        with pytest.raises(ValidationError):
            create_category(categories, "   ")


class TestUpdateCategory:
    """Tests for update_category."""

    def test_rename(self, categories):
        updated, category = update_category(categories, "cat3", name="Housing")
        assert category.name == "Housing"
        assert category.icon == "key"
        assert find_category(updated, "Housing") is not None
        assert find_category(updated, "Rent") is None

    def test_rename_to_own_name_different_case(self, categories):
        """Test that a category does not clash with itself."""
        _, category = update_category(categories, "cat3", name="RENT")
        assert category.name == "RENT"

    def test_rename_clash(self, categories):
        with pytest.raises(DuplicateCategoryError):
            update_category(categories, "cat3", name="leisure")

    def test_change_icon_only(self, categories):
        _, category = update_category(categories, "cat5", icon="film")
        assert category.name == "Leisure"
        assert category.icon == "film"

    def test_unknown_id(self, categories):
        with pytest.raises(NotFoundError):
            update_category(categories, "nope", name="X")


class TestDeleteCategory:
    """Tests for the deletion guard."""

    def test_refuses_category_in_use(self, categories, scenario_records):
        with pytest.raises(CategoryInUseError) as exc_info:
            delete_category(categories, scenario_records, "cat1")
        assert exc_info.value.category_name == "Groceries"
        assert exc_info.value.usage_count == 3

    def test_refuses_when_only_sub_item_uses_it(self, categories, txn):
        records = [txn("p", "5", category="Rent"), txn("c", "5", parent_id="p", category="Leisure")]
        with pytest.raises(CategoryInUseError):
            delete_category(categories, records, "cat5")

    def test_allows_unused(self, categories, scenario_records):
        updated = delete_category(categories, scenario_records, "cat5")
        assert [c.name for c in updated] == ["Groceries", "Household Bills", "Rent", "Salary"]

    def test_unknown_id(self, categories):
        with pytest.raises(NotFoundError):
            delete_category(categories, [], "nope")


class TestUsageCount:
    """Tests for category_usage_count."""

    def test_counts_flat_list(self, scenario_records):
        assert category_usage_count(scenario_records, "Groceries") == 3
        assert category_usage_count(scenario_records, "Salary") == 1

    def test_counts_built_tree(self, scenario_records):
        """Test that sub-items nested in a built tree are counted too."""
        assert category_usage_count(build_tree(scenario_records), "Groceries") == 3

    def test_exact_match(self, scenario_records):
        assert category_usage_count(scenario_records, "groceries") == 0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
