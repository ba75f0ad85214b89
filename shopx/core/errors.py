"""Exception types shared by the agent pipeline."""

from __future__ import annotations


class ShopxError(Exception):
    """Base class for shopx errors."""


class NonRetryableError(ShopxError):
    """Raised for structural problems that retrying cannot fix.

    The retry supervisor re-raises these on the first occurrence.
    """


class RetryExhaustedError(ShopxError):
    """An operation failed on every attempt the supervisor allowed."""

    def __init__(self, operation: str, attempts: int, last_error: BaseException):
        self.operation = operation
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"{operation} failed after {attempts} attempts: {describe_error(last_error)}")


class EmptyExtractionError(ShopxError):
    """The results page yielded no usable candidates."""


class ProductNotFoundError(ShopxError):
    """A candidate could not be re-located on the results page."""

    def __init__(self, title: str):
        self.title = title
        super().__init__(f"Could not find product: {title}")


class CheckoutControlNotFoundError(ShopxError):
    """None of the checkout control identifiers matched."""


class CheckoutPreconditionError(NonRetryableError):
    """Checkout was attempted away from the chosen product's page."""


class LabelMismatchError(NonRetryableError):
    """Readable labels could not be aligned 1:1 with the selection."""


class RunCancelledError(NonRetryableError):
    """The run was cancelled at a stage boundary."""


class SelectionPendingError(ShopxError):
    """A selection prompt was issued while another one is still outstanding."""


def describe_error(error: BaseException) -> str:
    """Human-readable text for an exception, falling back to its type name."""
    text = str(error).strip()
    return text or error.__class__.__name__
