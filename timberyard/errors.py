"""
Pricing and cart validation errors.

All of these are deterministic input failures, surfaced to the caller,
never retried and never replaced with a default price.
"""


class PricingError(ValueError):
    """Base class. `kind` is the stable name the HTTP layer reports."""

    kind = "PricingError"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidBasePrice(PricingError):
    kind = "InvalidBasePrice"


class InvalidConfiguration(PricingError):
    kind = "InvalidConfiguration"


class InvalidDimensions(PricingError):
    kind = "InvalidDimensions"


class InvalidQuantity(PricingError):
    kind = "InvalidQuantity"
