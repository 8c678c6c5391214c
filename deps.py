from fastapi import BackgroundTasks, Request

from carts import CartService
from catalog import CatalogStore
from notifier import ProductBroadcaster


def get_catalog(request: Request) -> CatalogStore:
    return request.app.state.catalog


def get_cart_service(request: Request) -> CartService:
    return request.app.state.cart_service


def get_broadcaster(request: Request) -> ProductBroadcaster:
    return request.app.state.broadcaster


def schedule_broadcast(broadcaster: ProductBroadcaster, background_tasks: BackgroundTasks) -> None:
    """Recompute the product list now and push it once the response is sent."""
    background_tasks.add_task(broadcaster.publish, broadcaster.snapshot())
