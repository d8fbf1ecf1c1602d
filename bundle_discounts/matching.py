"""
Cart matching and step condition checks.

A step's membership can come from an explicit product list or from
collection references. Collection membership cannot be resolved from a
cart snapshot, so collection references never match any line.
"""

import logging
import operator
from decimal import Decimal
from typing import Callable, Dict, List

from .schemas import (
    BundleDefinition,
    BundleMatchResult,
    BundleStep,
    Cart,
    CartLine,
    ConditionType,
)

logger = logging.getLogger(__name__)

COMPARATORS: Dict[ConditionType, Callable[[int, int], bool]] = {
    ConditionType.EQUAL_TO: operator.eq,
    ConditionType.GREATER_THAN: operator.gt,
    ConditionType.LESS_THAN: operator.lt,
    ConditionType.GREATER_THAN_OR_EQUAL_TO: operator.ge,
    ConditionType.LESS_THAN_OR_EQUAL_TO: operator.le,
}


class ProductListMembership:
    supported = True

    def __init__(self, product_ids):
        self.product_ids = frozenset(product_ids)

    def contains(self, line: CartLine) -> bool:
        return line.product_id is not None and line.product_id in self.product_ids


class CollectionMembership:
    supported = False

    def __init__(self, collection_ids):
        self.collection_ids = frozenset(collection_ids)

    def contains(self, line: CartLine) -> bool:
        return False


def step_memberships(step: BundleStep) -> list:
    memberships = []
    if step.products:
        memberships.append(ProductListMembership(step.product_ids))
    if step.collections:
        memberships.append(CollectionMembership(c.id for c in step.collections))
    return memberships


def resolvable(step: BundleStep) -> bool:
    """False when every membership source the step configures is unsupported."""
    memberships = step_memberships(step)
    return not memberships or any(m.supported for m in memberships)


def match_step(cart: Cart, step: BundleStep) -> List[CartLine]:
    memberships = step_memberships(step)
    unsupported = [m for m in memberships if not m.supported]
    if unsupported:
        logger.debug("Step %s uses collection membership, which never matches", step.id)
    return [
        line for line in cart.lines
        if any(m.contains(line) for m in memberships)
    ]


def total_quantity(lines: List[CartLine]) -> int:
    return sum(line.quantity for line in lines)


def check_condition(quantity: int, condition_type: ConditionType, condition_value: int) -> bool:
    return COMPARATORS[condition_type](quantity, condition_value)


def validate_step(matched_lines: List[CartLine], step: BundleStep) -> bool:
    total = total_quantity(matched_lines)
    if step.has_condition:
        return check_condition(total, step.condition_type, step.condition_value)
    if total < step.min_quantity:
        return False
    return step.max_quantity == 0 or total <= step.max_quantity


def check_bundle_conditions(cart: Cart, bundle: BundleDefinition) -> BundleMatchResult:
    """
    Run every enabled step of a bundle against the cart.

    Stops at the first failing step. A bundle without enabled steps never
    meets its conditions. Matching lines are the union over all steps, in
    cart order, each line counted once.
    """
    result = BundleMatchResult(bundle=bundle)
    steps = bundle.enabled_steps
    if not steps:
        logger.debug("Bundle %s has no enabled steps", bundle.id)
        return result

    matched: Dict[str, CartLine] = {}
    for step in steps:
        if not resolvable(step):
            logger.debug(
                "Bundle %s step %s relies on collections only, never satisfied",
                bundle.id, step.id,
            )
            return result
        lines = match_step(cart, step)
        if not validate_step(lines, step):
            logger.debug(
                "Bundle %s step %s not satisfied (quantity %d)",
                bundle.id, step.id, total_quantity(lines),
            )
            return result
        for line in lines:
            matched.setdefault(line.id, line)

    matching_lines = [line for line in cart.lines if line.id in matched]
    return BundleMatchResult(
        bundle=bundle,
        matching_lines=matching_lines,
        total_quantity=total_quantity(matching_lines),
        total_original_cost=sum((line.line_amount for line in matching_lines), Decimal("0")),
        meets_conditions=True,
    )
