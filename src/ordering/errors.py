"""Failure taxonomy for the order lifecycle.

Input and transition errors build on protean's ``ValidationError`` so they
carry field-keyed messages. Missing records surface as protean's
``ObjectNotFoundError``. Everything else is a plain exception the HTTP
layer maps to its own status code.
"""

from protean.exceptions import ObjectNotFoundError, ValidationError

NotFoundError = ObjectNotFoundError


class ConflictError(ValidationError):
    """An action that is illegal in the order's current state."""


class ProductUnavailable(ValidationError):
    """A referenced product does not exist."""


class ProductInactive(ProductUnavailable):
    """A referenced product exists but is no longer sold."""


class InsufficientStock(ConflictError):
    """One or more lines ask for more units than are on hand.

    ``shortfalls`` holds ``(product_name, requested, available)`` tuples for
    every offending line, not just the first one found.
    """

    def __init__(self, shortfalls):
        self.shortfalls = list(shortfalls)
        super().__init__(
            {
                "stock": [
                    f'Insufficient stock for "{name}". Only {available} available.'
                    for name, _requested, available in self.shortfalls
                ]
            }
        )


class AuthenticationError(Exception):
    """The request carries no caller identity."""

    def __init__(self, message="Authentication required"):
        self.message = message
        super().__init__(message)


class AuthorizationError(Exception):
    def __init__(self, message="Not authorized"):
        self.message = message
        super().__init__(message)


class DependencyError(Exception):
    """A collaborator (QR renderer, blob store) failed.

    Callers decide whether the failure is fatal; order creation treats it
    as a degraded success.
    """

    def __init__(self, message):
        self.message = message
        super().__init__(message)


class MissingPayee(DependencyError):
    def __init__(self, message="No UPI payee is configured for manual payments"):
        super().__init__(message)


class InvalidPayeeFormat(DependencyError):
    pass


class QrGenerationFailed(DependencyError):
    pass


class BlobStoreError(DependencyError):
    pass


class PersistenceVerificationFailed(Exception):
    """A read-back after a write did not return what was written."""

    def __init__(self, order_id, field, expected, actual):
        self.order_id = order_id
        self.field = field
        self.expected = expected
        self.actual = actual
        self.message = f"Failed to save {field} for order {order_id}. Please try again."
        super().__init__(self.message)
