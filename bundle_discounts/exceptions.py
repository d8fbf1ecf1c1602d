"""Errors raised inside the discount engine. The public passes absorb them."""

from typing import Any, Optional


class BundleDiscountError(Exception):
    """Base exception for bundle discount evaluation."""

    def __init__(
        self,
        message: str,
        code: str = "BUNDLE_000",
        details: Optional[dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(message)


class MalformedBundleError(BundleDiscountError):
    """A bundle document is not valid JSON or does not fit the bundle schema."""

    def __init__(
        self,
        message: str,
        code: str = "BUNDLE_400",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, code, details)
