"""
Cart Module - Service Layer
==============================
Loads a student's cart from the key/value store, applies one capped
mutation, and writes it straight back. Surfaces capacity warnings by
comparing the cart before and after, since the cart itself never errors.
"""

import logging
from typing import Tuple

from sqlalchemy.orm import Session

from modules.cart.models import Cart, CartLine
from modules.notification.models import NotificationType
from modules.notification.service import notification_service
from modules.storage.service import KeyValueStore

logger = logging.getLogger("comet.cart")


def cart_key(user_id: str) -> str:
    return f"cart:{user_id}"


class CartService:

    def load(self, db: Session, user_id: str) -> Cart:
        rows = KeyValueStore(db).get_json(cart_key(user_id), default=[])
        if not isinstance(rows, list):
            logger.warning(f"Stored cart for user #{user_id} is not a list, starting empty")
            rows = []
        return Cart.from_list(rows)

    def save(self, db: Session, user_id: str, cart: Cart):
        KeyValueStore(db).set_json(cart_key(user_id), cart.to_list())

    def add_item(self, db: Session, user_id: str, candidate: CartLine) -> Tuple[Cart, bool]:
        """
        Add one unit of an item.
        Returns: (cart, added). A capped add leaves the cart unchanged and
        sends a CART_LIMIT notification.
        """
        cart = self.load(db, user_id)
        before = cart.total_count()
        cart.add_item(candidate)
        added = cart.total_count() > before

        if added:
            self.save(db, user_id, cart)
        elif cart.has_reached_global_limit():
            notification_service.send(
                db, user_id, NotificationType.CART_LIMIT.value,
                f"You've reached the limit of {cart.global_limit} items per order",
                "Remove an item from your cart before adding another.",
            )
        else:
            notification_service.send(
                db, user_id, NotificationType.CART_LIMIT.value,
                f"Limit reached for {candidate.name}",
                f"You can request at most {candidate.limit} of this item.",
            )
        return cart, added

    def set_quantity(self, db: Session, user_id: str, item_id: str, quantity: int) -> Cart:
        cart = self.load(db, user_id)
        cart.set_quantity(item_id, quantity)
        self.save(db, user_id, cart)
        return cart

    def remove_item(self, db: Session, user_id: str, item_id: str) -> Cart:
        cart = self.load(db, user_id)
        cart.remove_item(item_id)
        self.save(db, user_id, cart)
        return cart

    def clear(self, db: Session, user_id: str) -> Cart:
        KeyValueStore(db).remove(cart_key(user_id))
        return Cart()

    def get_count(self, db: Session, user_id: str) -> int:
        return self.load(db, user_id).total_count()


cart_service = CartService()
