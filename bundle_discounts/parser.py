import json
import logging
from typing import List, Optional

from pydantic import ValidationError

from .exceptions import MalformedBundleError
from .schemas import BundleDefinition, Cart

logger = logging.getLogger(__name__)


def load_bundle_document(document: str) -> BundleDefinition:
    """
    Strict parse of a stored bundle document. Raises MalformedBundleError.
    """
    try:
        data = json.loads(document)
    except (TypeError, ValueError, RecursionError) as e:
        raise MalformedBundleError(f"Bundle document is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise MalformedBundleError(
            "Bundle document must be a JSON object",
            details={"type": type(data).__name__},
        )

    try:
        return BundleDefinition.model_validate(data)
    except RecursionError as e:
        raise MalformedBundleError("Bundle document is nested too deeply") from e
    except ValidationError as e:
        raise MalformedBundleError(
            "Bundle document does not match the bundle schema",
            details={"errors": e.errors(include_url=False, include_input=False)},
        ) from e


def parse_bundle_document(document: Optional[str]) -> Optional[BundleDefinition]:
    """
    Lenient parse: any malformed or mismatched document becomes None.
    """
    if not document:
        return None
    try:
        return load_bundle_document(document)
    except MalformedBundleError as e:
        logger.warning("Skipping bundle document: %s (%s)", e.message, e.code)
        return None


def discover_bundles(cart: Cart) -> List[BundleDefinition]:
    # Scan lines in cart order; the first document seen for a bundle id wins
    bundles: List[BundleDefinition] = []
    seen = set()
    for line in cart.lines:
        bundle = parse_bundle_document(line.bundle_document)
        if bundle is None:
            continue
        if bundle.id in seen:
            continue
        seen.add(bundle.id)
        bundles.append(bundle)
    logger.debug("Discovered %d bundle(s) across %d line(s)", len(bundles), len(cart.lines))
    return bundles
