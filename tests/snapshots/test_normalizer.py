"""
Tests for snapshots.serializer — model normalization and hydration.
"""

from decimal import Decimal

import pytest

from snapshots.errors import CircularReferenceError
from snapshots.serializer import (
    CIRCULAR_REFERENCE_HANDLER,
    ENABLE_MAX_DEPTH,
    GROUPS,
    IGNORED_ATTRIBUTES,
    MAX_DEPTH,
    OBJECT_TO_POPULATE,
    ModelNormalizer,
)
from tests.testapp.models import Category, Node, Product


@pytest.fixture
def normalizer() -> ModelNormalizer:
    return ModelNormalizer()


@pytest.fixture
def product(db):
    category = Category.objects.create(name="Tools")
    return Product.objects.create(
        name="Product 1",
        price=Decimal("9.99"),
        category=category,
        internal_note="restock soon",
    )


@pytest.fixture
def partners(db):
    first = Node.objects.create(name="a")
    second = Node.objects.create(name="b", partner=first)
    first.partner = second
    first.save()
    return first, second


# ── normalize ────────────────────────────────────────────────

class TestNormalizeFields:
    def test_all_fields_nested(self, normalizer, product):
        data = normalizer.normalize(product)
        assert data == {
            "id": product.pk,
            "name": "Product 1",
            "price": "9.99",
            "category": {"id": product.category_id, "name": "Tools"},
            "internal_note": "restock soon",
        }

    def test_unsaved_instance(self, normalizer):
        data = normalizer.normalize(Product(name="Draft", price=Decimal("1.50")))
        assert data == {
            "id": None,
            "name": "Draft",
            "price": "1.50",
            "category": None,
            "internal_note": "",
        }

    def test_ignored_attributes(self, normalizer, product):
        data = normalizer.normalize(
            product, context={IGNORED_ATTRIBUTES: ["internal_note", "category"]}
        )
        assert set(data) == {"id", "name", "price"}

    def test_scalars_pass_through(self, normalizer):
        assert normalizer.normalize("text") == "text"
        assert normalizer.normalize({"n": Decimal("2.5"), "s": {2, 1}}) == {
            "n": "2.5",
            "s": [1, 2],
        }


class TestNormalizeGroups:
    def test_groups_filter_declaring_model(self, normalizer, product):
        data = normalizer.normalize(product, context={GROUPS: ["order"]})
        assert data == {"id": product.pk, "name": "Product 1", "price": "9.99"}

    def test_group_string_accepted(self, normalizer, product):
        data = normalizer.normalize(product, context={GROUPS: "snapshot"})
        assert set(data) == {"id", "name", "price", "category"}

    def test_undeclared_model_not_filtered(self, normalizer, product):
        data = normalizer.normalize(product, context={GROUPS: ["snapshot"]})
        assert data["category"] == {"id": product.category_id, "name": "Tools"}

    def test_unknown_group_yields_empty_map(self, normalizer, product):
        assert normalizer.normalize(product, context={GROUPS: ["nothing"]}) == {}


class TestNormalizeDepth:
    def test_depth_zero_emits_related_key(self, normalizer, product):
        data = normalizer.normalize(
            product, context={ENABLE_MAX_DEPTH: True, MAX_DEPTH: 0}
        )
        assert data["category"] == product.category_id

    def test_depth_ignored_unless_enabled(self, normalizer, product):
        data = normalizer.normalize(product, context={MAX_DEPTH: 0})
        assert data["category"] == {"id": product.category_id, "name": "Tools"}

    def test_depth_one_nests_once(self, normalizer, partners):
        first, second = partners
        data = normalizer.normalize(
            first, context={ENABLE_MAX_DEPTH: True, MAX_DEPTH: 1}
        )
        assert data == {
            "id": first.pk,
            "name": "a",
            "partner": {"id": second.pk, "name": "b", "partner": first.pk},
        }

    def test_depth_limit_on_uncached_relation(self, normalizer, partners):
        first, _ = partners
        loaded = Node.objects.get(pk=first.pk)
        data = normalizer.normalize(
            loaded, context={ENABLE_MAX_DEPTH: True, MAX_DEPTH: 0}
        )
        assert data["partner"] == first.partner_id


class TestCircularReference:
    def test_cycle_without_handler_raises(self, normalizer, partners):
        first, _ = partners
        with pytest.raises(CircularReferenceError, match="Node"):
            normalizer.normalize(first)

    def test_cycle_uses_handler(self, normalizer, partners):
        first, second = partners
        seen = []

        def handler(obj, format, context):
            seen.append(obj)
            return f"ref:{obj.pk}"

        data = normalizer.normalize(first, context={CIRCULAR_REFERENCE_HANDLER: handler})

        assert data == {
            "id": first.pk,
            "name": "a",
            "partner": {"id": second.pk, "name": "b", "partner": f"ref:{first.pk}"},
        }
        assert [obj.pk for obj in seen] == [first.pk]


# ── denormalize ──────────────────────────────────────────────

class TestDenormalize:
    def test_builds_fresh_instance(self, normalizer):
        product = normalizer.denormalize(
            {"id": 5, "name": "Product 1", "price": "9.99", "category": 3},
            "testapp.Product",
        )
        assert isinstance(product, Product)
        assert product._state.adding is True
        assert product.pk == 5
        assert product.name == "Product 1"
        assert product.price == Decimal("9.99")
        assert product.category_id == 3

    def test_nested_relation_uses_its_key(self, normalizer):
        product = normalizer.denormalize(
            {"name": "P", "category": {"id": 7, "name": "Tools"}}, Product
        )
        assert product.category_id == 7

    def test_missing_keys_keep_defaults(self, normalizer):
        product = normalizer.denormalize({"name": "P"}, Product)
        assert product.pk is None
        assert product.internal_note == ""

    def test_object_to_populate(self, normalizer):
        existing = Product(name="Old", internal_note="keep")
        result = normalizer.denormalize(
            {"name": "New"}, Product, context={OBJECT_TO_POPULATE: existing}
        )
        assert result is existing
        assert existing.name == "New"
        assert existing.internal_note == "keep"

    def test_non_mapping_rejected(self, normalizer):
        with pytest.raises(TypeError, match="mapping"):
            normalizer.denormalize(["Product 1"], Product)

    def test_unresolvable_type_rejected(self, normalizer):
        with pytest.raises(TypeError):
            normalizer.denormalize({}, object)

    def test_unknown_label(self, normalizer):
        with pytest.raises(LookupError):
            normalizer.denormalize({}, "testapp.Missing")
