import logging
from typing import Any, Dict, List

from fastapi import WebSocket
from starlette.concurrency import run_in_threadpool

from catalog import CatalogStore

logger = logging.getLogger(__name__)


class ProductBroadcaster:
    """Pushes the whole product list to every connected socket.

    Delivery is at-most-once: a socket that fails a send is dropped and
    nothing is queued for it.
    """

    def __init__(self, catalog: CatalogStore):
        self.catalog = catalog
        self.connections: List[WebSocket] = []

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self.connections.append(websocket)
        logger.info("Realtime client connected (%d open)", len(self.connections))

    def disconnect(self, websocket: WebSocket) -> None:
        remaining = [ws for ws in self.connections if ws is not websocket]
        if len(remaining) != len(self.connections):
            self.connections = remaining
            logger.info("Realtime client disconnected (%d open)", len(self.connections))

    def snapshot(self) -> List[Dict[str, Any]]:
        return self.catalog.list_all()

    async def send(self, websocket: WebSocket, event: str, data: Any) -> None:
        await websocket.send_json({"event": event, "data": data})

    async def publish(self, products: List[Dict[str, Any]]) -> None:
        for websocket in list(self.connections):
            try:
                await self.send(websocket, "products", products)
            except Exception:
                logger.warning("Dropping realtime client after failed send", exc_info=True)
                self.disconnect(websocket)

    async def notify(self) -> None:
        products = await run_in_threadpool(self.snapshot)
        await self.publish(products)
