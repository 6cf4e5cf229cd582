"""Pricing engine.

Computes line totals and order totals from the products captured at
submission time.  Amounts are ``Decimal`` with cent precision; tax is
rounded half-up to the cent *before* it is added, so
``total_price == items_price + tax_price + shipping_price`` holds
exactly on every quote.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, List, Optional, Tuple

from django.conf import settings

from modules.orders.constants import DEFAULT_SHIPPING_FLAT_FEE, DEFAULT_TAX_RATE
from modules.products.dtos import ProductSnapshot
from modules.products.exceptions import InvalidQuantity

CENT = Decimal("0.01")


def to_money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class PricedLine:
    """One order line priced from its product snapshot."""

    product: ProductSnapshot
    quantity: int
    unit_price: Decimal
    line_total: Decimal

    @property
    def product_id(self):
        return self.product.id

    @property
    def vendor_id(self):
        return self.product.vendor_id


@dataclass(frozen=True)
class PriceQuote:
    lines: Tuple[PricedLine, ...]
    items_price: Decimal
    tax_price: Decimal
    shipping_price: Decimal
    total_price: Decimal


class PricingEngine:
    """Flat-rate tax and shipping on top of the sum of line totals.

    Rates default to ``ORDER_TAX_RATE`` / ``ORDER_SHIPPING_FLAT_FEE``
    from Django settings.
    """

    def __init__(
        self,
        tax_rate: Optional[Decimal] = None,
        shipping_flat_fee: Optional[Decimal] = None,
    ) -> None:
        if tax_rate is None:
            tax_rate = Decimal(str(getattr(settings, "ORDER_TAX_RATE", DEFAULT_TAX_RATE)))
        if shipping_flat_fee is None:
            shipping_flat_fee = Decimal(
                str(getattr(settings, "ORDER_SHIPPING_FLAT_FEE", DEFAULT_SHIPPING_FLAT_FEE))
            )
        if tax_rate < 0 or shipping_flat_fee < 0:
            raise ValueError("Tax rate and shipping fee must be non-negative.")
        self.tax_rate = tax_rate
        self.shipping_flat_fee = to_money(shipping_flat_fee)

    def price_line(self, product: ProductSnapshot, quantity: int) -> PricedLine:
        if quantity < 1:
            raise InvalidQuantity(product.id, quantity)
        unit_price = to_money(product.price)
        return PricedLine(
            product=product,
            quantity=quantity,
            unit_price=unit_price,
            line_total=unit_price * quantity,
        )

    def quote(self, pairs: Iterable[Tuple[ProductSnapshot, int]]) -> PriceQuote:
        """Price ``(product snapshot, quantity)`` pairs in caller order.

        Raises:
            InvalidQuantity: any quantity is below one.
        """
        lines: List[PricedLine] = [self.price_line(product, qty) for product, qty in pairs]
        items_price = sum((line.line_total for line in lines), Decimal("0.00"))
        tax_price = to_money(items_price * self.tax_rate)
        shipping_price = self.shipping_flat_fee
        return PriceQuote(
            lines=tuple(lines),
            items_price=items_price,
            tax_price=tax_price,
            shipping_price=shipping_price,
            total_price=items_price + tax_price + shipping_price,
        )
