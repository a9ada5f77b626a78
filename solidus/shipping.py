"""
Shipping rate estimation.
"""

import logging
import secrets
from typing import Iterable, List

from solidus.domain import Order, Shipment, ShippingMethod, ShippingRate
from solidus.errors import CheckoutError

logger = logging.getLogger(__name__)

NO_SHIPPING_METHODS = (
    "No shipping methods available for selected location, please change "
    "your address and try again."
)


class ShippingEstimator:
    def rates_for(
        self, order: Order, shipping_methods: Iterable[ShippingMethod]
    ) -> List[ShippingRate]:
        """Rates of the methods covering the ship address, cheapest first
        and selected."""
        if order.ship_address is None:
            return []

        country_iso = order.ship_address.country_iso
        rates = sorted(
            (
                ShippingRate(
                    shipping_method_id=method.id,
                    name=method.name,
                    cost=method.cost,
                )
                for method in shipping_methods
                if method.covers(country_iso)
                and method.currency == order.currency
            ),
            key=lambda rate: rate.cost,
        )
        if rates:
            rates[0].selected = True
        return rates

    def build_shipments(
        self, order: Order, shipping_methods: Iterable[ShippingMethod]
    ) -> List[Shipment]:
        """Build the proposed shipments for an order.

        Raises:
            CheckoutError: if no shipping method covers the ship address
        """
        rates = self.rates_for(order, shipping_methods)
        if not rates:
            logger.warning(
                "No shipping rates for order",
                extra={
                    "order_number": order.number,
                    "country_iso": (
                        order.ship_address.country_iso
                        if order.ship_address
                        else None
                    ),
                },
            )
            raise CheckoutError(NO_SHIPPING_METHODS, attribute="base")

        shipment = Shipment(
            number=f"H{secrets.randbelow(10**11):011d}",
            shipping_rates=rates,
        )
        logger.debug(
            "Built shipment",
            extra={
                "order_number": order.number,
                "shipment_number": shipment.number,
                "rate_count": len(rates),
                "selected_cost": str(shipment.cost),
            },
        )
        return [shipment]
