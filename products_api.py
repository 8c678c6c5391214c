from typing import Any, Dict

from fastapi import APIRouter, BackgroundTasks, Body, Depends, Request

from catalog import CatalogStore
from deps import get_broadcaster, get_catalog, schedule_broadcast
from errors import NotFoundError
from listing import build_links, resolve_listing
from notifier import ProductBroadcaster

router = APIRouter()


def _not_found(product_id: str) -> NotFoundError:
    return NotFoundError(f"Product with ID {product_id} not found")


@router.get("")
def list_products(request: Request, catalog: CatalogStore = Depends(get_catalog)):
    listing = resolve_listing(request.query_params)
    result = catalog.query(listing)
    links = build_links(listing, result, str(request.url.replace(query="")))
    return {
        "status": "success",
        "payload": result.items,
        "totalDocs": result.total_count,
        "totalPages": result.total_pages,
        "page": result.page,
        "limit": result.limit,
        "hasPrevPage": result.has_prev_page,
        "hasNextPage": result.has_next_page,
        "prevPage": result.prev_page,
        "nextPage": result.next_page,
        "prevLink": links.prev_link,
        "nextLink": links.next_link,
    }


@router.get("/{product_id}")
def get_product(product_id: str, catalog: CatalogStore = Depends(get_catalog)):
    product = catalog.find_by_id(product_id)
    if product is None:
        raise _not_found(product_id)
    return {"status": "success", "payload": product, "message": "Product retrieved"}


@router.post("", status_code=201)
def create_product(
    background_tasks: BackgroundTasks,
    data: Dict[str, Any] = Body(...),
    catalog: CatalogStore = Depends(get_catalog),
    broadcaster: ProductBroadcaster = Depends(get_broadcaster),
):
    product = catalog.create(data)
    schedule_broadcast(broadcaster, background_tasks)
    return {"status": "success", "payload": product, "message": "Product created"}


@router.put("/{product_id}")
def update_product(
    product_id: str,
    background_tasks: BackgroundTasks,
    data: Dict[str, Any] = Body(...),
    catalog: CatalogStore = Depends(get_catalog),
    broadcaster: ProductBroadcaster = Depends(get_broadcaster),
):
    product = catalog.update(product_id, data)
    if product is None:
        raise _not_found(product_id)
    schedule_broadcast(broadcaster, background_tasks)
    return {"status": "success", "payload": product, "message": "Product updated"}


@router.delete("/{product_id}")
def delete_product(
    product_id: str,
    background_tasks: BackgroundTasks,
    catalog: CatalogStore = Depends(get_catalog),
    broadcaster: ProductBroadcaster = Depends(get_broadcaster),
):
    product = catalog.delete(product_id)
    if product is None:
        raise _not_found(product_id)
    schedule_broadcast(broadcaster, background_tasks)
    return {"status": "success", "payload": product, "message": "Product deleted"}
