import logging
from typing import List

from .currency import CurrencyTable, format_amount
from .schemas import (
    BundleDefinition,
    BundleMatchResult,
    Cart,
    DeliveryDiscountsAdd,
    DeliveryGroupTarget,
    DiscountCandidate,
    DiscountMethod,
    DiscountOperation,
    DiscountRule,
    DiscountTarget,
    DiscountValue,
    FixedAmountValue,
    OrderDiscountsAdd,
    OrderSubtotalTarget,
    PercentageValue,
)

logger = logging.getLogger(__name__)

FREE_SHIPPING_PERCENTAGE = 100.0


def _order_subtotal_operation(
    message: str, excluded_line_ids: List[str], value: DiscountValue
) -> DiscountOperation:
    target = DiscountTarget(
        order_subtotal=OrderSubtotalTarget(excluded_cart_line_ids=excluded_line_ids)
    )
    return DiscountOperation(
        order_discounts_add=OrderDiscountsAdd(
            candidates=[DiscountCandidate(message=message, targets=[target], value=value)],
        )
    )


def build_order_operations(
    bundle: BundleDefinition,
    match: BundleMatchResult,
    rule: DiscountRule,
    cart: Cart,
    currency_code: str,
    rates: CurrencyTable,
) -> List[DiscountOperation]:
    """
    Order-subtotal discount limited to the bundle's own lines.

    Every cart line outside match.matching_lines is excluded from the target,
    so the discount never reaches unrelated cart contents.
    """
    bundle_line_ids = match.matching_line_ids
    excluded = [line.id for line in cart.lines if line.id not in bundle_line_ids]
    method = bundle.pricing.discount_method

    if method == DiscountMethod.FIXED_AMOUNT_OFF:
        if rule.fixed_amount_off <= 0:
            logger.debug("Bundle %s: fixed amount rule has no amount", bundle.id)
            return []
        amount = rates.convert(rule.fixed_amount_off, currency_code)
        message = f"{bundle.name}: {rates.format_money(amount, currency_code)} OFF"
        value = DiscountValue(fixed_amount=FixedAmountValue(amount=format_amount(amount)))
        return [_order_subtotal_operation(message, excluded, value)]

    if method == DiscountMethod.PERCENTAGE_OFF:
        if rule.percentage_off <= 0:
            logger.debug("Bundle %s: percentage rule has no percentage", bundle.id)
            return []
        message = f"{bundle.name}: {format_amount(rule.percentage_off)}% OFF"
        value = DiscountValue(percentage=PercentageValue(value=float(rule.percentage_off)))
        return [_order_subtotal_operation(message, excluded, value)]

    # free shipping goes through the delivery pass
    return []


def build_delivery_operations(bundle: BundleDefinition, cart: Cart) -> List[DiscountOperation]:
    """One 100%-off delivery discount per delivery group on the cart."""
    operations = []
    for group in cart.delivery_groups:
        target = DiscountTarget(delivery_group=DeliveryGroupTarget(id=group.id))
        candidate = DiscountCandidate(
            message=f"{bundle.name}: FREE SHIPPING",
            targets=[target],
            value=DiscountValue(percentage=PercentageValue(value=FREE_SHIPPING_PERCENTAGE)),
        )
        operations.append(
            DiscountOperation(delivery_discounts_add=DeliveryDiscountsAdd(candidates=[candidate]))
        )
    return operations


def build_operations(
    bundle: BundleDefinition,
    match: BundleMatchResult,
    rule: DiscountRule,
    cart: Cart,
    currency_code: str,
    rates: CurrencyTable,
) -> List[DiscountOperation]:
    if bundle.pricing is None:
        return []
    if bundle.pricing.discount_method == DiscountMethod.FREE_SHIPPING:
        return build_delivery_operations(bundle, cart)
    return build_order_operations(bundle, match, rule, cart, currency_code, rates)
