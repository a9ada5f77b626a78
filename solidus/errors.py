"""
Domain errors raised by use cases and translated to HTTP responses by the
API layer.
"""

from typing import Dict, List, Optional


class SolidusError(Exception):
    """Base class for errors raised by the checkout domain."""


class ResourceNotFoundError(SolidusError):
    """The requested record does not exist."""

    def __init__(self, resource: str, identifier: str) -> None:
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} '{identifier}' not found")


class NotAuthorizedError(SolidusError):
    """The caller may not perform the action on the resource."""


class InvalidResourceError(SolidusError):
    """Submitted attributes failed validation.

    ``errors`` maps attribute names to lists of messages.
    """

    def __init__(self, errors: Dict[str, List[str]]) -> None:
        self.errors = errors
        super().__init__(f"Invalid resource: {errors}")


class CheckoutError(SolidusError):
    """A checkout transition was refused by one of its guards."""

    def __init__(
        self, message: str, attribute: str = "base", state: Optional[str] = None
    ) -> None:
        self.message = message
        self.attribute = attribute
        self.state = state
        super().__init__(message)

    @property
    def errors(self) -> Dict[str, List[str]]:
        return {self.attribute: [self.message]}


class PaymentProcessingError(CheckoutError):
    """The gateway declined or failed to process a payment."""

    def __init__(self, message: str) -> None:
        super().__init__(message, attribute="payments")


class InvalidTransitionError(SolidusError):
    """A state machine event is not allowed from the current state."""

    def __init__(self, model: str, event: str, state: str) -> None:
        self.model = model
        self.event = event
        self.state = state
        super().__init__(
            f"Cannot {event} {model} when it is in state '{state}'"
        )


class ExpectedTotalMismatchError(SolidusError):
    """The client's expected total differs from the order total."""

    def __init__(self, expected: str, actual: str) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            "Expected total does not match order total "
            f"(expected {expected}, got {actual})"
        )
