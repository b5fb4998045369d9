"""
Cart Module - Models
=====================
In-memory cart with two caps that hold after every mutation:
each line stays within its own limit, and the whole cart stays within
GLOBAL_CART_LIMIT items. Over-limit requests are clamped or ignored,
never rejected with an error.
"""

from dataclasses import dataclass, field, asdict
from typing import List, Optional

from config.settings import GLOBAL_CART_LIMIT


@dataclass
class CartLine:
    """One requested inventory item."""
    id: str
    name: str
    category: str = ""
    quantity: int = 1
    limit: int = 1
    description: str = ""

    def __post_init__(self):
        self.limit = max(1, int(self.limit))
        self.quantity = min(max(1, int(self.quantity)), self.limit)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "CartLine":
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            category=data.get("category", ""),
            quantity=data.get("quantity", 1),
            limit=data.get("limit", 1),
            description=data.get("description", ""),
        )


@dataclass
class Cart:
    lines: List[CartLine] = field(default_factory=list)
    global_limit: int = GLOBAL_CART_LIMIT

    def find(self, item_id: str) -> Optional[CartLine]:
        for line in self.lines:
            if line.id == item_id:
                return line
        return None

    def total_count(self) -> int:
        return sum(line.quantity for line in self.lines)

    def has_reached_global_limit(self) -> bool:
        return self.total_count() >= self.global_limit

    def add_item(self, candidate: CartLine):
        """
        Add one unit of `candidate`.
        Existing line: +1 up to its own limit. New line: quantity 1.
        Either way nothing happens once the cart holds global_limit items.
        """
        if self.has_reached_global_limit():
            return

        existing = self.find(candidate.id)
        if existing:
            existing.quantity = min(existing.limit, existing.quantity + 1)
        else:
            self.lines.append(CartLine(
                id=candidate.id,
                name=candidate.name,
                category=candidate.category,
                quantity=1,
                limit=candidate.limit,
                description=candidate.description,
            ))

    def set_quantity(self, item_id: str, requested: int):
        """Clamp to min(requested, line limit, room left by the other lines), floor 1."""
        line = self.find(item_id)
        if not line:
            return

        others = self.total_count() - line.quantity
        allowed = min(int(requested), line.limit, self.global_limit - others)
        line.quantity = max(1, allowed)

    def remove_item(self, item_id: str):
        self.lines = [line for line in self.lines if line.id != item_id]

    def clear(self):
        self.lines = []

    def to_list(self) -> List[dict]:
        return [line.to_dict() for line in self.lines]

    @classmethod
    def from_list(cls, rows: List[dict]) -> "Cart":
        """Rebuild from stored rows, dropping duplicates and anything past the caps."""
        cart = cls()
        seen = set()
        for row in rows or []:
            try:
                line = CartLine.from_dict(row)
            except (KeyError, TypeError, ValueError):
                continue
            if line.id in seen:
                continue
            room = cart.global_limit - cart.total_count()
            if room < 1:
                break
            line.quantity = min(line.quantity, room)
            seen.add(line.id)
            cart.lines.append(line)
        return cart
