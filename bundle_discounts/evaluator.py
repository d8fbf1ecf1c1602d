import logging
from typing import Optional, Tuple

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from .config import settings
from .currency import DEFAULT_CURRENCY_TABLE, CurrencyTable
from .exceptions import BundleDiscountError
from .matching import check_bundle_conditions
from .operations import build_delivery_operations, build_order_operations
from .parser import discover_bundles, parse_bundle_document
from .rules import select_rule
from .schemas import (
    BundleDefinition,
    BundleMatchResult,
    Cart,
    DiscountClass,
    DiscountMethod,
    DiscountRule,
    RunInput,
    RunResult,
)

logger = logging.getLogger(__name__)

router = APIRouter()

ORDER_CLASSES = {DiscountClass.ORDER, DiscountClass.PRODUCT}


def evaluate_bundle(
    cart: Cart, bundle: BundleDefinition
) -> Optional[Tuple[BundleMatchResult, DiscountRule]]:
    """Match, validate and pick a tier for one bundle. None means no discount."""
    match = check_bundle_conditions(cart, bundle)
    if not match.meets_conditions:
        logger.debug("Bundle %s: cart does not meet conditions", bundle.id)
        return None
    rule = select_rule(bundle.pricing.rules, match.total_quantity)
    if rule is None:
        logger.debug("Bundle %s: no tier for quantity %d", bundle.id, match.total_quantity)
        return None
    return match, rule


def run_cart_lines_discounts(
    run_input: RunInput,
    rates: CurrencyTable = DEFAULT_CURRENCY_TABLE,
    default_currency: str = "USD",
) -> RunResult:
    """
    Order/product pass: every qualifying fixed-amount or percentage bundle
    contributes its own candidate. How candidates combine is up to the host.
    """
    cart = run_input.cart
    if not cart.lines:
        return RunResult()
    if not ORDER_CLASSES.intersection(run_input.discount.discount_classes):
        logger.debug("Order and product discount classes inactive")
        return RunResult()

    currency_code = cart.currency_code(default_currency)
    operations = []
    for bundle in discover_bundles(cart):
        pricing = bundle.pricing
        if pricing is None or not pricing.enable_discount:
            logger.debug(
                "Bundle %s: discount disabled", bundle.id,
                extra={"context": {"bundle_id": bundle.id, "reason": "discount_disabled"}},
            )
            continue
        if pricing.discount_method == DiscountMethod.FREE_SHIPPING:
            continue

        try:
            evaluated = evaluate_bundle(cart, bundle)
            if evaluated is None:
                continue
            match, rule = evaluated
            operations.extend(
                build_order_operations(bundle, match, rule, cart, currency_code, rates)
            )
        except (BundleDiscountError, ArithmeticError) as e:
            logger.warning(
                "Bundle %s skipped: %s", bundle.id, e,
                extra={"context": {"bundle_id": bundle.id, "reason": "evaluation_error"}},
            )
            continue

    logger.info(
        "Cart lines pass produced %d operation(s)", len(operations),
        extra={"context": {"currency": currency_code, "operations": len(operations)}},
    )
    return RunResult(operations=operations)


def run_delivery_options_discounts(run_input: RunInput) -> RunResult:
    """
    Shipping pass: the first free-shipping bundle the cart qualifies for wins.
    """
    cart = run_input.cart
    if not cart.lines or not cart.delivery_groups:
        return RunResult()
    if DiscountClass.SHIPPING not in run_input.discount.discount_classes:
        logger.debug("Shipping discount class inactive")
        return RunResult()

    for bundle in discover_bundles(cart):
        pricing = bundle.pricing
        if pricing is None or not pricing.enable_discount:
            continue
        if pricing.discount_method != DiscountMethod.FREE_SHIPPING:
            continue
        try:
            if evaluate_bundle(cart, bundle) is None:
                continue
            operations = build_delivery_operations(bundle, cart)
        except (BundleDiscountError, ArithmeticError) as e:
            logger.warning(
                "Bundle %s skipped: %s", bundle.id, e,
                extra={"context": {"bundle_id": bundle.id, "reason": "evaluation_error"}},
            )
            continue
        logger.info(
            "Bundle %s grants free shipping on %d group(s)", bundle.id, len(operations),
            extra={"context": {"bundle_id": bundle.id, "delivery_groups": len(operations)}},
        )
        return RunResult(operations=operations)

    return RunResult()


def get_currency_table() -> CurrencyTable:
    return settings.currency_table()


class ParseBundleRequest(BaseModel):
    document: str


class ParseBundleResponse(BaseModel):
    valid: bool
    bundle: Optional[BundleDefinition] = None


@router.post("/discounts/cart-lines", response_model=RunResult, response_model_exclude_none=True)
def cart_lines_discounts(
    run_input: RunInput, rates: CurrencyTable = Depends(get_currency_table)
) -> RunResult:
    return run_cart_lines_discounts(run_input, rates, settings.default_currency)


@router.post("/discounts/delivery-options", response_model=RunResult, response_model_exclude_none=True)
def delivery_options_discounts(run_input: RunInput) -> RunResult:
    return run_delivery_options_discounts(run_input)


@router.post("/bundles/parse", response_model=ParseBundleResponse)
def parse_bundle(body: ParseBundleRequest) -> ParseBundleResponse:
    """Check whether a stored bundle document would be picked up by the engine."""
    bundle = parse_bundle_document(body.document)
    return ParseBundleResponse(valid=bundle is not None, bundle=bundle)
