"""
Unit tests for the relocation cycle guard and integrity checks
"""

import pytest

from taxonomy_api.services.move_validator import is_valid_move, validate_category
from tests.factories import make_category, sample_catalog


@pytest.fixture
def chain():
    electronics = make_category("electronics", children=["phones"])
    phones = make_category("phones", electronics, children=["smartphones"])
    smartphones = make_category("smartphones", phones)
    home = make_category("home")
    return electronics, phones, smartphones, home


def test_detach_to_root_is_always_valid(chain):
    _, phones, _, _ = chain

    assert is_valid_move(phones.id, None) is True


def test_self_parenting_rejected(chain):
    _, phones, _, _ = chain

    assert is_valid_move(phones.id, phones.id, phones) is False
    assert is_valid_move(phones.id, phones.id) is False


@pytest.mark.parametrize("target_index", [1, 2])
def test_move_under_descendant_rejected(chain, target_index):
    """Electronics cannot go below its own child or grandchild"""
    electronics = chain[0]
    target = chain[target_index]

    assert is_valid_move(electronics.id, target.id, target) is False


def test_move_to_unrelated_branch_is_valid(chain):
    _, phones, smartphones, home = chain

    assert is_valid_move(phones.id, home.id, home) is True
    assert is_valid_move(smartphones.id, home.id, home) is True


def test_move_up_to_ancestor_is_valid(chain):
    electronics, _, smartphones, _ = chain

    assert is_valid_move(smartphones.id, electronics.id, electronics) is True


def test_valid_category_passes():
    categories = sample_catalog()

    for category in categories:
        result = validate_category(category, categories)
        assert result.is_valid, result.errors
        assert result.errors == []


def test_missing_required_fields():
    category = make_category("orphan", name="", slug="")

    result = validate_category(category, [category])

    assert not result.is_valid
    assert "Category name is required" in result.errors
    assert "Category slug is required" in result.errors


def test_tier_and_root_mismatch_detected():
    categories = sample_catalog()
    laptops = categories[2]
    laptops.tier = 5
    laptops.root_id = "clothing"

    errors = validate_category(laptops, categories).errors

    assert any(error.startswith("Tier 5") for error in errors)
    assert any(error.startswith("Root clothing") for error in errors)


def test_invalid_parent_reference():
    electronics = make_category("electronics")
    phones = make_category("phones", electronics)

    errors = validate_category(phones, [phones]).errors

    assert "Parent category electronics not found" in errors


def test_parent_not_listing_child():
    electronics = make_category("electronics")
    phones = make_category("phones", electronics)

    errors = validate_category(phones, [electronics, phones]).errors

    assert "Parent electronics does not list phones as a child" in errors


def test_invalid_children_reference():
    electronics = make_category("electronics", children=["ghost"])

    errors = validate_category(electronics, [electronics]).errors

    assert "Child category ghost not found" in errors


def test_stale_leaf_flag():
    categories = sample_catalog()
    categories[0].is_leaf = True

    errors = validate_category(categories[0], categories).errors

    assert "Leaf flag does not match children" in errors


def test_circular_reference_detected():
    a = make_category("a", children=["b"])
    b = make_category("b", a, children=["a"])

    errors = validate_category(a, [a, b]).errors

    assert "Circular reference detected" in errors
