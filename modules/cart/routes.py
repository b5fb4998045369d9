"""
Cart Routes
=============
JSON endpoints for the student's cart. Capacity caps never produce an
error response; `added` tells the client whether an add took effect.
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from config.database import get_db
from modules.auth.deps import require_student
from modules.cart.models import Cart, CartLine
from modules.cart.service import cart_service

router = APIRouter(prefix="/api/cart", tags=["cart"])


# ==========================================
# Schemas
# ==========================================

class AddItemRequest(BaseModel):
    id: str = Field(..., min_length=1, max_length=100)
    name: str = Field(..., max_length=200)
    category: str = Field("", max_length=100)
    description: str = Field("", max_length=500)
    limit: int = Field(1, ge=1)


class QuantityRequest(BaseModel):
    quantity: int


def _cart_payload(cart: Cart) -> dict:
    return {
        "items": cart.to_list(),
        "count": cart.total_count(),
        "limit_reached": cart.has_reached_global_limit(),
    }


# ==========================================
# 🛒 Cart
# ==========================================

@router.get("")
async def view_cart(db: Session = Depends(get_db), me=Depends(require_student)):
    return _cart_payload(cart_service.load(db, me.id))


@router.post("/items")
async def add_item(body: AddItemRequest, db: Session = Depends(get_db), me=Depends(require_student)):
    candidate = CartLine(
        id=body.id, name=body.name, category=body.category,
        description=body.description, limit=body.limit,
    )
    cart, added = cart_service.add_item(db, me.id, candidate)
    db.commit()
    return {**_cart_payload(cart), "added": added}


@router.put("/items/{item_id}")
async def update_quantity(
    item_id: str,
    body: QuantityRequest,
    db: Session = Depends(get_db),
    me=Depends(require_student),
):
    cart = cart_service.set_quantity(db, me.id, item_id, body.quantity)
    db.commit()
    return _cart_payload(cart)


@router.delete("/items/{item_id}")
async def remove_item(item_id: str, db: Session = Depends(get_db), me=Depends(require_student)):
    cart = cart_service.remove_item(db, me.id, item_id)
    db.commit()
    return _cart_payload(cart)


@router.delete("")
async def clear_cart(db: Session = Depends(get_db), me=Depends(require_student)):
    cart = cart_service.clear(db, me.id)
    db.commit()
    return _cart_payload(cart)
