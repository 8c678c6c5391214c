import logging
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pymongo.errors import PyMongoError
from starlette.concurrency import run_in_threadpool

from errors import ShopError
from notifier import ProductBroadcaster

logger = logging.getLogger(__name__)

router = APIRouter()


async def _reply_error(broadcaster: ProductBroadcaster, websocket: WebSocket, message: str) -> None:
    await broadcaster.send(websocket, "productError", {"success": False, "message": message})


async def _add_product(broadcaster: ProductBroadcaster, websocket: WebSocket, data: Any) -> None:
    try:
        product = await run_in_threadpool(broadcaster.catalog.create, data)
    except ShopError as exc:
        await _reply_error(broadcaster, websocket, ", ".join(exc.errors) if exc.errors else exc.message)
        return
    except PyMongoError as exc:
        logger.exception("addProduct failed")
        await _reply_error(broadcaster, websocket, str(exc))
        return
    await broadcaster.notify()
    await broadcaster.send(
        websocket,
        "productAdded",
        {"success": True, "message": "Product added", "product": product},
    )


async def _delete_product(broadcaster: ProductBroadcaster, websocket: WebSocket, data: Any) -> None:
    try:
        product = await run_in_threadpool(broadcaster.catalog.delete, data)
    except ShopError as exc:
        await _reply_error(broadcaster, websocket, exc.message)
        return
    except PyMongoError as exc:
        logger.exception("deleteProduct failed")
        await _reply_error(broadcaster, websocket, str(exc))
        return
    if product is None:
        await _reply_error(broadcaster, websocket, "Product not found")
        return
    await broadcaster.notify()
    await broadcaster.send(
        websocket,
        "productDeleted",
        {"success": True, "message": "Product deleted", "product": product},
    )


HANDLERS = {
    "addProduct": _add_product,
    "deleteProduct": _delete_product,
}


@router.websocket("/ws/products")
async def products_socket(websocket: WebSocket):
    broadcaster: ProductBroadcaster = websocket.app.state.broadcaster
    await broadcaster.connect(websocket)
    try:
        products = await run_in_threadpool(broadcaster.snapshot)
        await broadcaster.send(websocket, "products", products)
        while True:
            try:
                frame = await websocket.receive_json()
            except (ValueError, KeyError):
                # not JSON, or a binary frame
                await _reply_error(broadcaster, websocket, "Malformed message")
                continue
            event = frame.get("event") if isinstance(frame, dict) else None
            handler = HANDLERS.get(event)
            if handler is None:
                await _reply_error(broadcaster, websocket, f"Unknown event: {event}")
                continue
            await handler(broadcaster, websocket, frame.get("data"))
    except WebSocketDisconnect:
        pass
    finally:
        broadcaster.disconnect(websocket)
