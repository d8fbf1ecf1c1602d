"""Tests for bundle document parsing and discovery."""

import json

import pytest

from bundle_discounts.exceptions import MalformedBundleError
from bundle_discounts.parser import discover_bundles, load_bundle_document, parse_bundle_document
from bundle_discounts.schemas import ConditionType, DiscountMethod

from conftest import P1, P2


class TestParseBundleDocument:
    def test_valid_document(self, make_bundle):
        bundle = parse_bundle_document(json.dumps(make_bundle()))
        assert bundle is not None
        assert bundle.id == "bundle-1"
        assert bundle.name == "Test Bundle"
        assert bundle.steps[0].product_ids == {P1}
        assert bundle.pricing.discount_method == DiscountMethod.FIXED_AMOUNT_OFF
        assert bundle.pricing.rules[0].minimum_quantity == 1

    @pytest.mark.parametrize("document", ["", "not json", "{", "[1, 2]", "42", "null", '"text"'])
    def test_malformed_json_is_none(self, document):
        assert parse_bundle_document(document) is None

    def test_none_document_is_none(self):
        assert parse_bundle_document(None) is None

    def test_missing_required_field_is_none(self, make_bundle):
        doc = make_bundle()
        del doc["id"]
        assert parse_bundle_document(json.dumps(doc)) is None

    def test_step_without_min_quantity_is_none(self, make_bundle):
        doc = make_bundle()
        del doc["steps"][0]["minQuantity"]
        assert parse_bundle_document(json.dumps(doc)) is None

    def test_unknown_discount_method_is_none(self, make_bundle):
        assert parse_bundle_document(json.dumps(make_bundle(method="buy_one_get_one"))) is None

    def test_unknown_fields_ignored(self, make_bundle):
        doc = make_bundle()
        doc["allBundleProductIds"] = [P1]
        doc["design"] = {"color": "red"}
        doc["steps"][0]["displayVariantsAsIndividual"] = True
        bundle = parse_bundle_document(json.dumps(doc))
        assert bundle is not None
        assert bundle.id == "bundle-1"

    def test_defaults(self, make_bundle):
        doc = make_bundle()
        del doc["steps"][0]["enabled"]
        del doc["steps"][0]["maxQuantity"]
        step = parse_bundle_document(json.dumps(doc)).steps[0]
        assert step.enabled is True
        assert step.max_quantity == 0
        assert step.condition_type is None
        assert step.collections == []

    def test_null_pricing(self, make_bundle):
        doc = make_bundle()
        doc["pricing"] = None
        bundle = parse_bundle_document(json.dumps(doc))
        assert bundle is not None
        assert bundle.pricing is None

    def test_bare_product_ids(self, make_bundle):
        steps = [{"id": "s1", "name": "S1", "products": [P1, P2], "minQuantity": 1}]
        bundle = parse_bundle_document(json.dumps(make_bundle(steps=steps)))
        assert bundle.steps[0].product_ids == {P1, P2}

    def test_positional_steps_mapping_is_ordered(self, make_bundle):
        steps = {
            "1": {"id": "second", "products": [P2], "minQuantity": 1},
            "0": {"id": "first", "products": [P1], "minQuantity": 1},
        }
        bundle = parse_bundle_document(json.dumps(make_bundle(steps=steps)))
        assert [s.id for s in bundle.steps] == ["first", "second"]

    def test_blank_condition_type_is_unset(self, make_bundle):
        doc = make_bundle()
        doc["steps"][0]["conditionType"] = ""
        doc["steps"][0]["conditionValue"] = 3
        step = parse_bundle_document(json.dumps(doc)).steps[0]
        assert step.condition_type is None
        assert not step.has_condition

    def test_condition_type_parsed(self, make_bundle):
        doc = make_bundle()
        doc["steps"][0]["conditionType"] = "greater_than"
        doc["steps"][0]["conditionValue"] = 2
        step = parse_bundle_document(json.dumps(doc)).steps[0]
        assert step.condition_type == ConditionType.GREATER_THAN
        assert step.has_condition

    def test_out_of_range_percentage_is_none(self, make_bundle):
        rules = [{"minimumQuantity": 1, "percentageOff": 150}]
        assert parse_bundle_document(json.dumps(make_bundle(method="percentage_off", rules=rules))) is None


class TestLoadBundleDocument:
    def test_invalid_json_raises(self):
        with pytest.raises(MalformedBundleError) as exc:
            load_bundle_document("{oops")
        assert exc.value.code == "BUNDLE_400"

    def test_schema_mismatch_carries_errors(self, make_bundle):
        doc = make_bundle()
        doc["steps"] = "everything"
        with pytest.raises(MalformedBundleError) as exc:
            load_bundle_document(json.dumps(doc))
        assert exc.value.details["errors"]


class TestDiscoverBundles:
    def test_no_documents(self, make_cart, make_line):
        cart = make_cart([make_line("line-1", P1, 2)])
        assert discover_bundles(cart) == []

    def test_deduplicates_by_id_first_wins(self, make_cart, make_line, make_bundle):
        first = make_bundle(name="Fresh")
        stale = make_bundle(name="Stale")
        cart = make_cart([
            make_line("line-1", P1, 1, bundle=first),
            make_line("line-2", P2, 1, bundle=stale),
        ])
        bundles = discover_bundles(cart)
        assert len(bundles) == 1
        assert bundles[0].name == "Fresh"

    def test_distinct_bundles_in_line_order(self, make_cart, make_line, make_bundle):
        cart = make_cart([
            make_line("line-1", P1, 1, bundle=make_bundle(bundle_id="b")),
            make_line("line-2", P2, 1, bundle=make_bundle(bundle_id="a")),
        ])
        assert [b.id for b in discover_bundles(cart)] == ["b", "a"]

    def test_malformed_document_skipped(self, make_cart, make_line, make_bundle):
        cart = make_cart([
            make_line("line-1", P1, 1, bundle="{broken"),
            make_line("line-2", P2, 1, bundle=make_bundle()),
        ])
        assert [b.id for b in discover_bundles(cart)] == ["bundle-1"]

    def test_non_variant_merchandise_ignored(self, make_cart, make_line, make_bundle):
        cart = make_cart([make_line("line-1", P1, 1, bundle=make_bundle(), typename="CustomProduct")])
        assert discover_bundles(cart) == []


class TestPathologicalDocuments:
    def test_deeply_nested_json_is_none(self):
        assert parse_bundle_document("[" * 200000) is None

    def test_deeply_nested_json_raises_malformed(self):
        with pytest.raises(MalformedBundleError):
            load_bundle_document('{"id": ' + "[" * 200000)

    def test_oversized_fixed_amount_is_none(self, make_bundle):
        rules = [{"minimumQuantity": 1, "fixedAmountOff": 1e30}]
        assert parse_bundle_document(json.dumps(make_bundle(rules=rules))) is None

    def test_deeply_nested_document_skipped_in_discovery(self, make_cart, make_line, make_bundle):
        cart = make_cart([
            make_line("line-1", P1, 1, bundle="[" * 200000),
            make_line("line-2", P2, 1, bundle=make_bundle()),
        ])
        assert [b.id for b in discover_bundles(cart)] == ["bundle-1"]
