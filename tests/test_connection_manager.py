import json

from app.main import ConnectionManager

from conftest import run

class FakeWebSocket:
    def __init__(self, on_send=None, fail=False):
        self.sent = []
        self.on_send = on_send
        self.fail = fail

    async def accept(self):
        pass

    async def send_text(self, text):
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(json.loads(text))
        if self.on_send:
            await self.on_send()

def test_disconnect_removes_only_the_closed_socket():
    manager = ConnectionManager()
    first, second = FakeWebSocket(), FakeWebSocket()

    async def scenario():
        await manager.connect(first, "a@example.com")
        await manager.connect(second, "a@example.com")
        manager.disconnect("a@example.com", first)
        await manager.broadcast({"type": "ping"})

    run(scenario())

    assert manager.active_connections == {"a@example.com": [second]}
    assert second.sent == [{"type": "ping"}]
    assert first.sent == []

def test_last_socket_closing_drops_the_user():
    manager = ConnectionManager()
    socket = FakeWebSocket()

    async def scenario():
        await manager.connect(socket, "a@example.com")
        manager.disconnect("a@example.com", socket)

    run(scenario())

    assert manager.active_connections == {}
    assert manager.connection_count() == 0

def test_broadcast_survives_connections_changing_mid_send():
    manager = ConnectionManager()
    late = FakeWebSocket()
    leaving = FakeWebSocket()

    async def churn():
        manager.disconnect("b@example.com", leaving)
        await manager.connect(late, "c@example.com")

    first = FakeWebSocket(on_send=churn)

    async def scenario():
        await manager.connect(first, "a@example.com")
        await manager.connect(leaving, "b@example.com")
        await manager.broadcast({"type": "sos_alert"})

    run(scenario())

    assert first.sent == [{"type": "sos_alert"}]
    assert set(manager.active_connections) == {"a@example.com", "c@example.com"}

def test_broadcast_drops_sockets_that_fail():
    manager = ConnectionManager()
    healthy, broken = FakeWebSocket(), FakeWebSocket(fail=True)

    async def scenario():
        await manager.connect(healthy, "a@example.com")
        await manager.connect(broken, "a@example.com")
        await manager.broadcast({"type": "sos_alert"})

    run(scenario())

    assert manager.active_connections == {"a@example.com": [healthy]}
