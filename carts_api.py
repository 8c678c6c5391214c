from typing import Optional

from fastapi import APIRouter, Body, Depends

from carts import CartService
from deps import get_cart_service
from schemas import AddQuantityIn, CartUpdateIn, QuantityIn

router = APIRouter()


def _success(service: CartService, cart: dict, message: str) -> dict:
    return {"status": "success", "payload": service.details(cart), "message": message}


@router.post("", status_code=201)
def create_cart(service: CartService = Depends(get_cart_service)):
    cart = service.store.create()
    return _success(service, cart, "Cart created")


@router.get("/{cart_id}")
def get_cart(cart_id: str, service: CartService = Depends(get_cart_service)):
    payload = service.get_with_details(cart_id)
    message = "Cart products retrieved" if payload["products"] else "The cart is empty"
    return {"status": "success", "payload": payload, "message": message}


@router.post("/{cart_id}/product/{product_id}")
def add_product_to_cart(
    cart_id: str,
    product_id: str,
    body: Optional[AddQuantityIn] = Body(None),
    service: CartService = Depends(get_cart_service),
):
    cart = service.store.get(cart_id)
    quantity = body.quantity if body is not None else 1
    cart = service.add_product(cart, product_id, quantity)
    return _success(service, cart, "Product added to cart")


@router.delete("/{cart_id}/products/{product_id}")
def remove_product_from_cart(
    cart_id: str,
    product_id: str,
    service: CartService = Depends(get_cart_service),
):
    cart = service.store.get(cart_id)
    cart = service.remove_product(cart, product_id)
    return _success(service, cart, "Product removed from cart")


@router.put("/{cart_id}")
def update_cart(
    cart_id: str,
    body: CartUpdateIn,
    service: CartService = Depends(get_cart_service),
):
    cart = service.store.get(cart_id)
    items = [line.model_dump() for line in body.products]
    cart = service.update_cart(cart, items)
    return _success(service, cart, "Cart updated")


@router.put("/{cart_id}/products/{product_id}")
def update_product_quantity(
    cart_id: str,
    product_id: str,
    body: QuantityIn,
    service: CartService = Depends(get_cart_service),
):
    cart = service.store.get(cart_id)
    cart = service.update_product_quantity(cart, product_id, body.quantity)
    return _success(service, cart, "Product quantity updated")


@router.delete("/{cart_id}")
def clear_cart(cart_id: str, service: CartService = Depends(get_cart_service)):
    cart = service.store.get(cart_id)
    cart = service.clear_cart(cart)
    return _success(service, cart, "All products were removed from the cart")
