import logging
from typing import List, Optional

from .schemas import DiscountRule

logger = logging.getLogger(__name__)


def select_rule(rules: List[DiscountRule], total_quantity: int) -> Optional[DiscountRule]:
    """
    Pick the highest quantity tier the cart has reached.

    Ties on minimum_quantity keep the rule listed first. Returns None when no
    tier is reached.
    """
    eligible = [r for r in rules if r.minimum_quantity <= total_quantity]
    if not eligible:
        logger.debug("No discount tier reached at quantity %d", total_quantity)
        return None
    return max(eligible, key=lambda r: r.minimum_quantity)
