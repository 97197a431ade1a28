"""
Cart Aggregator: one cart per owner, held as an immutable snapshot.

Every mutation builds the next snapshot (version + 1) and swaps it in as one
step, so totals derived from `self.cart` are never stale. Totals are always
computed, never stored.

Quantity rules:
- add with quantity <= 0 is rejected (InvalidQuantity)
- update to quantity <= 0 removes the line
- update/remove of an unknown id is a no-op

Not safe for concurrent writers; callers serialise mutations per owner.
"""

import logging
from typing import Optional

from .config import settings
from .errors import InvalidQuantity
from .schemas import Cart, CartLineItem, CartTotals, ShippingPolicy
from .shipping import ShippingEstimator

logger = logging.getLogger(__name__)


class CartAggregator:

    def __init__(self, owner_id: str = None, cart: Cart = None, vat_rate: float = None,
                 shipping_policy: ShippingPolicy = None):
        if cart is None:
            if owner_id is None:
                raise ValueError("CartAggregator needs an owner_id or an existing cart")
            cart = Cart(owner_id=owner_id)
        self.cart = cart
        self.vat_rate = settings.VAT_RATE if vat_rate is None else vat_rate
        self.shipping_policy = shipping_policy or ShippingPolicy.from_settings(settings)
        self.shipping = ShippingEstimator()

    @property
    def owner_id(self) -> str:
        return self.cart.owner_id

    @property
    def version(self) -> int:
        return self.cart.version

    # --- Mutations ---

    def add_item(self, item: CartLineItem) -> CartTotals:
        """
        Merge into an existing line with the same product + options, else append.
        The existing line keeps its frozen unit price.
        """
        if item.quantity <= 0:
            raise InvalidQuantity(f"Quantity must be at least 1, got {item.quantity}")

        items = list(self.cart.items)
        for i, existing in enumerate(items):
            if existing.same_config(item):
                items[i] = existing.model_copy(update={"quantity": existing.quantity + item.quantity})
                logger.debug("Merged %s into line %s (qty %d)", item.product_ref, existing.id,
                             items[i].quantity)
                break
        else:
            items.append(item)

        self._commit(items)
        return self.get_totals()

    def update_quantity(self, item_id: str, quantity: int) -> CartTotals:
        """Set a line's quantity. Zero or less removes it; unknown id does nothing."""
        if self.cart.find(item_id) is None:
            logger.debug("update_quantity: %s not in cart %s", item_id, self.owner_id)
            return self.get_totals()
        if quantity <= 0:
            return self.remove_item(item_id)

        items = [
            item.model_copy(update={"quantity": quantity}) if item.id == item_id else item
            for item in self.cart.items
        ]
        self._commit(items)
        return self.get_totals()

    def update_options(self, item_id: str, options: dict, unit_price: float,
                       dimensions=None) -> CartTotals:
        """
        Reconfigure a line: new options and a new frozen unit price.
        If the new config matches another line, the two merge.
        """
        current = self.cart.find(item_id)
        if current is None:
            return self.get_totals()

        replacement = CartLineItem(
            product_ref=current.product_ref,
            category=current.category,
            name=current.name,
            quantity=current.quantity,
            unit_price=unit_price,
            options=options,
            dimensions=dimensions if dimensions is not None else current.dimensions,
        )
        remaining = [item for item in self.cart.items if item.id != item_id]

        position = self.cart.items.index(current)
        for i, other in enumerate(remaining):
            if other.same_config(replacement):
                remaining[i] = other.model_copy(
                    update={"quantity": other.quantity + replacement.quantity}
                )
                break
        else:
            remaining.insert(position, replacement)

        self._commit(remaining)
        return self.get_totals()

    def remove_item(self, item_id: str) -> CartTotals:
        if self.cart.find(item_id) is None:
            return self.get_totals()
        self._commit([item for item in self.cart.items if item.id != item_id])
        return self.get_totals()

    def clear(self) -> CartTotals:
        self._commit([])
        return self.get_totals()

    def _commit(self, items) -> None:
        self.cart = self.cart.replace_items(items)

    # --- Derived ---

    def get_totals(self) -> CartTotals:
        """Pure: reads the current snapshot, never mutates."""
        cart = self.cart
        subtotal = cart.subtotal
        vat_amount = subtotal * self.vat_rate
        shipping_cost = self.shipping.estimate(cart, self.shipping_policy)
        return CartTotals(
            items=list(cart.items),
            item_count=cart.item_count,
            subtotal=subtotal,
            vat_rate=self.vat_rate,
            vat_amount=vat_amount,
            shipping_cost=shipping_cost,
            total=subtotal + vat_amount + shipping_cost,
            version=cart.version,
        )

    def find(self, item_id: str) -> Optional[CartLineItem]:
        return self.cart.find(item_id)
