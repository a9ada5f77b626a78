"""
Payment gateways and the payment state machine.

Gateways answer authorize / purchase / capture / void requests. The
processor moves payments through their states based on those answers:

    checkout -> processing -> pending     (authorize)
    checkout -> processing -> completed   (purchase, auto-capture methods)
    processing -> failed                  (gateway declined)
    pending -> completed                  (capture)
    checkout | pending -> void            (void)
"""

import logging
import secrets
from decimal import Decimal
from typing import Dict, Optional, Protocol, runtime_checkable

from pydantic import BaseModel

from solidus.domain import Payment, PaymentMethod, PaymentState, utcnow
from solidus.errors import InvalidTransitionError, PaymentProcessingError

logger = logging.getLogger(__name__)

PAYMENT_FAILED = "There was an error processing your payment"


class GatewayResponse(BaseModel):
    success: bool
    authorization: Optional[str] = None
    message: str = ""


@runtime_checkable
class PaymentGateway(Protocol):
    def authorize(self, amount: Decimal, payment: Payment) -> GatewayResponse:
        ...

    def purchase(self, amount: Decimal, payment: Payment) -> GatewayResponse:
        ...

    def capture(self, amount: Decimal, payment: Payment) -> GatewayResponse:
        ...

    def void(self, payment: Payment) -> GatewayResponse:
        ...


class CheckGateway:
    """Offline payments (checks, bank transfers): every request succeeds,
    money is collected outside the system."""

    def _ok(self) -> GatewayResponse:
        return GatewayResponse(
            success=True,
            authorization=secrets.token_hex(6).upper(),
            message="Check payment recorded",
        )

    def authorize(self, amount: Decimal, payment: Payment) -> GatewayResponse:
        return self._ok()

    def purchase(self, amount: Decimal, payment: Payment) -> GatewayResponse:
        return self._ok()

    def capture(self, amount: Decimal, payment: Payment) -> GatewayResponse:
        return self._ok()

    def void(self, payment: Payment) -> GatewayResponse:
        return self._ok()


DEFAULT_GATEWAYS: Dict[str, PaymentGateway] = {"check": CheckGateway()}


class PaymentProcessor:
    def __init__(
        self, gateways: Optional[Dict[str, PaymentGateway]] = None
    ) -> None:
        self.gateways = gateways if gateways is not None else DEFAULT_GATEWAYS

    def _gateway_for(self, method: PaymentMethod) -> PaymentGateway:
        try:
            return self.gateways[method.type]
        except KeyError:
            raise PaymentProcessingError(
                f"No gateway configured for payment method type "
                f"'{method.type}'"
            )

    @staticmethod
    def _transition(payment: Payment, state: PaymentState) -> None:
        logger.debug(
            "Payment state transition",
            extra={
                "payment_number": payment.number,
                "from_state": payment.state.value,
                "to_state": state.value,
            },
        )
        payment.state = state
        payment.updated_at = utcnow()

    def process(self, payment: Payment, method: PaymentMethod) -> Payment:
        """Authorize, or purchase for auto-capture methods, a checkout
        payment.

        Raises:
            InvalidTransitionError: if the payment is not in checkout
            PaymentProcessingError: if the gateway declines
        """
        if payment.state is not PaymentState.CHECKOUT:
            raise InvalidTransitionError(
                "payment", "process", payment.state.value
            )
        if payment.amount is None:
            raise PaymentProcessingError("Payment amount is not set")

        gateway = self._gateway_for(method)
        self._transition(payment, PaymentState.PROCESSING)

        if method.auto_capture:
            response = gateway.purchase(payment.amount, payment)
            success_state = PaymentState.COMPLETED
        else:
            response = gateway.authorize(payment.amount, payment)
            success_state = PaymentState.PENDING

        if not response.success:
            self._transition(payment, PaymentState.FAILED)
            logger.warning(
                "Payment declined by gateway",
                extra={
                    "payment_number": payment.number,
                    "gateway_message": response.message,
                },
            )
            raise PaymentProcessingError(PAYMENT_FAILED)

        payment.response_code = response.authorization
        self._transition(payment, success_state)
        logger.info(
            "Payment processed",
            extra={
                "payment_number": payment.number,
                "amount": str(payment.amount),
                "state": payment.state.value,
            },
        )
        return payment

    def capture(self, payment: Payment, method: PaymentMethod) -> Payment:
        if payment.state is not PaymentState.PENDING:
            raise InvalidTransitionError(
                "payment", "capture", payment.state.value
            )
        if payment.amount is None:
            raise PaymentProcessingError("Payment has no amount to capture")
        response = self._gateway_for(method).capture(payment.amount, payment)
        if not response.success:
            self._transition(payment, PaymentState.FAILED)
            raise PaymentProcessingError(PAYMENT_FAILED)
        self._transition(payment, PaymentState.COMPLETED)
        return payment

    def void(self, payment: Payment, method: PaymentMethod) -> Payment:
        if payment.state not in (PaymentState.CHECKOUT, PaymentState.PENDING):
            raise InvalidTransitionError(
                "payment", "void", payment.state.value
            )
        if payment.state is PaymentState.PENDING:
            response = self._gateway_for(method).void(payment)
            if not response.success:
                raise PaymentProcessingError(PAYMENT_FAILED)
        self._transition(payment, PaymentState.VOID)
        return payment
