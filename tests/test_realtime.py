import asyncio

from pymongo.errors import PyMongoError

from notifier import ProductBroadcaster


class FakeSocket:
    def __init__(self, fail=False):
        self.fail = fail
        self.accepted = False
        self.sent = []

    async def accept(self):
        self.accepted = True

    async def send_json(self, data):
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(data)


class TestBroadcaster:
    def test_publish_reaches_every_socket(self, catalog):
        broadcaster = ProductBroadcaster(catalog)
        sockets = [FakeSocket(), FakeSocket()]
        for socket in sockets:
            asyncio.run(broadcaster.connect(socket))

        asyncio.run(broadcaster.publish([{"id": "1"}]))

        assert all(s.accepted for s in sockets)
        assert all(s.sent == [{"event": "products", "data": [{"id": "1"}]}] for s in sockets)

    def test_failed_socket_is_dropped(self, catalog):
        broadcaster = ProductBroadcaster(catalog)
        good, bad = FakeSocket(), FakeSocket(fail=True)
        asyncio.run(broadcaster.connect(good))
        asyncio.run(broadcaster.connect(bad))

        asyncio.run(broadcaster.publish([]))
        asyncio.run(broadcaster.publish([]))

        assert bad not in broadcaster.connections
        assert len(good.sent) == 2

    def test_notify_sends_full_snapshot(self, catalog, make_product):
        older = make_product()
        newer = make_product()
        broadcaster = ProductBroadcaster(catalog)
        socket = FakeSocket()
        asyncio.run(broadcaster.connect(socket))

        asyncio.run(broadcaster.notify())

        frame = socket.sent[-1]
        assert [p["id"] for p in frame["data"]] == [newer["id"], older["id"]]


class TestProductsSocket:
    def test_initial_snapshot_on_connect(self, client, make_product):
        product = make_product()
        with client.websocket_connect("/ws/products") as ws:
            frame = ws.receive_json()
        assert frame["event"] == "products"
        assert [p["id"] for p in frame["data"]] == [product["id"]]

    def test_add_product(self, client, product_data):
        with client.websocket_connect("/ws/products") as ws:
            ws.receive_json()
            ws.send_json({"event": "addProduct", "data": product_data(code="WS-1")})

            snapshot = ws.receive_json()
            reply = ws.receive_json()

        assert snapshot["event"] == "products"
        assert [p["code"] for p in snapshot["data"]] == ["WS-1"]
        assert reply["event"] == "productAdded"
        assert reply["data"]["success"] is True
        assert reply["data"]["product"]["code"] == "WS-1"

    def test_add_invalid_product(self, client):
        with client.websocket_connect("/ws/products") as ws:
            ws.receive_json()
            ws.send_json({"event": "addProduct", "data": {"title": "incomplete"}})
            reply = ws.receive_json()
        assert reply["event"] == "productError"
        assert reply["data"]["success"] is False
        assert "price" in reply["data"]["message"]

    def test_delete_product(self, client, make_product):
        product = make_product()
        with client.websocket_connect("/ws/products") as ws:
            ws.receive_json()
            ws.send_json({"event": "deleteProduct", "data": product["id"]})
            snapshot = ws.receive_json()
            reply = ws.receive_json()
        assert snapshot["data"] == []
        assert reply["event"] == "productDeleted"
        assert reply["data"]["product"]["id"] == product["id"]

    def test_delete_missing_product(self, client):
        with client.websocket_connect("/ws/products") as ws:
            ws.receive_json()
            ws.send_json({"event": "deleteProduct", "data": "0123456789abcdef01234567"})
            reply = ws.receive_json()
        assert reply["event"] == "productError"
        assert reply["data"]["message"] == "Product not found"

    def test_unknown_event(self, client):
        with client.websocket_connect("/ws/products") as ws:
            ws.receive_json()
            ws.send_json({"event": "shout", "data": None})
            reply = ws.receive_json()
        assert reply["event"] == "productError"

    def test_malformed_frames_keep_the_connection_open(self, client, product_data):
        with client.websocket_connect("/ws/products") as ws:
            ws.receive_json()
            ws.send_text("not json")
            bad_text = ws.receive_json()
            ws.send_bytes(b"\x00\x01")
            bad_binary = ws.receive_json()

            ws.send_json({"event": "addProduct", "data": product_data(code="AFTER-BAD")})
            snapshot = ws.receive_json()
            reply = ws.receive_json()

        assert bad_text == {"event": "productError", "data": {"success": False, "message": "Malformed message"}}
        assert bad_binary["event"] == "productError"
        assert [p["code"] for p in snapshot["data"]] == ["AFTER-BAD"]
        assert reply["event"] == "productAdded"

    def test_store_failure_is_reported(self, app, client, make_product, monkeypatch):
        product = make_product()

        def fail(*args, **kwargs):
            raise PyMongoError("connection lost")

        monkeypatch.setattr(app.state.catalog, "create", fail)
        monkeypatch.setattr(app.state.catalog, "delete", fail)

        with client.websocket_connect("/ws/products") as ws:
            ws.receive_json()
            ws.send_json({"event": "addProduct", "data": {"title": "x"}})
            add_reply = ws.receive_json()
            ws.send_json({"event": "deleteProduct", "data": product["id"]})
            delete_reply = ws.receive_json()

        assert add_reply == {"event": "productError", "data": {"success": False, "message": "connection lost"}}
        assert delete_reply["event"] == "productError"
        assert delete_reply["data"]["message"] == "connection lost"

        assert reply["event"] == "productError"

    def test_http_mutations_are_broadcast(self, client, product_data):
        with client.websocket_connect("/ws/products") as ws:
            assert ws.receive_json()["data"] == []

            created = client.post("/api/products", json=product_data(code="HTTP-1")).json()["payload"]
            after_create = ws.receive_json()

            client.put(f"/api/products/{created['id']}", json={"price": 42.0})
            after_update = ws.receive_json()

            client.delete(f"/api/products/{created['id']}")
            after_delete = ws.receive_json()

        assert [p["code"] for p in after_create["data"]] == ["HTTP-1"]
        assert after_update["data"][0]["price"] == 42.0
        assert after_delete["data"] == []

    def test_failed_mutation_is_not_broadcast(self, client, product_data):
        with client.websocket_connect("/ws/products") as ws:
            ws.receive_json()
            response = client.delete("/api/products/0123456789abcdef01234567")
            assert response.status_code == 404
            # a later successful mutation is the next frame the client sees
            client.post("/api/products", json=product_data(code="NEXT"))
            frame = ws.receive_json()
        assert [p["code"] for p in frame["data"]] == ["NEXT"]
