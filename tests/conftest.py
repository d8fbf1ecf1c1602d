"""Shared cart and bundle builders for engine tests."""

import json

import pytest

from bundle_discounts.schemas import Cart, RunInput

P1 = "gid://shopify/Product/123"
P2 = "gid://shopify/Product/456"
P3 = "gid://shopify/Product/789"


def bundle_doc(
    bundle_id="bundle-1",
    name="Test Bundle",
    steps=None,
    method="fixed_amount_off",
    rules=None,
    enable_discount=True,
):
    if steps is None:
        steps = [
            {
                "id": "step-1",
                "name": "Step 1",
                "products": [{"id": P1, "title": "Product 1"}],
                "collections": [],
                "minQuantity": 1,
                "maxQuantity": 5,
                "enabled": True,
            }
        ]
    if rules is None:
        rules = [{"discountOn": "quantity", "minimumQuantity": 1, "fixedAmountOff": 10, "percentageOff": 0}]
    return {
        "id": bundle_id,
        "name": name,
        "steps": steps,
        "pricing": {
            "enableDiscount": enable_discount,
            "discountMethod": method,
            "rules": rules,
        },
    }


def cart_line(line_id, product_id, quantity=1, bundle=None, amount="25.00", typename="ProductVariant"):
    product = {"id": product_id, "title": product_id.rsplit("/", 1)[-1], "inCollections": []}
    if bundle is not None:
        product["metafield"] = {"value": bundle if isinstance(bundle, str) else json.dumps(bundle)}
    return {
        "id": line_id,
        "quantity": quantity,
        "merchandise": {"__typename": typename, "id": f"variant-{line_id}", "product": product},
        "cost": {"subtotalAmount": {"amount": amount}},
    }


def cart_payload(lines, currency="USD", delivery_groups=("delivery-group-1",)):
    return {
        "lines": lines,
        "deliveryGroups": [{"id": g} for g in delivery_groups],
        "cost": {"subtotalAmount": {"amount": "0", "currencyCode": currency}},
    }


def run_input(lines, classes=("ORDER",), **cart_kwargs):
    return RunInput.model_validate(
        {"cart": cart_payload(lines, **cart_kwargs), "discount": {"discountClasses": list(classes)}}
    )


@pytest.fixture
def make_bundle():
    return bundle_doc


@pytest.fixture
def make_line():
    return cart_line


@pytest.fixture
def make_cart():
    def _make(lines, **kwargs):
        return Cart.model_validate(cart_payload(lines, **kwargs))
    return _make


@pytest.fixture
def make_input():
    return run_input
