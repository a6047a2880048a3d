import asyncio
import json

import pytest
import websockets

from client import SignalingClient
from main import serve
from orchestrator import SessionOrchestrator


@pytest.fixture
async def server_url():
    orchestrator = SessionOrchestrator()
    async with serve(orchestrator, "127.0.0.1", 0) as server:
        port = server.sockets[0].getsockname()[1]
        yield f"ws://127.0.0.1:{port}", orchestrator


async def settle(orchestrator, predicate, timeout=2.0):
    async def poll():
        while not predicate():
            await asyncio.sleep(0.01)
    await asyncio.wait_for(poll(), timeout)


async def test_two_clients_pair_and_exchange_offer(server_url):
    url, orchestrator = server_url
    alice = await SignalingClient.connect(url)
    bob = await SignalingClient.connect(url)
    try:
        await alice.register("alice")
        await bob.register("bob")
        await settle(orchestrator, lambda: len(orchestrator.connections) == 2)

        await alice.join_room("r1", "alice")
        assert await alice.recv(timeout=2) == ("waitingForOpponent", None)

        await bob.join_room("r1", "bob")
        assert await alice.recv(timeout=2) == ("readyForCall", {"callerId": "alice"})
        assert await bob.recv(timeout=2) == ("readyForCall", {"callerId": "alice"})

        offer = {"type": "offer", "sdp": "v=0\r\n"}
        await alice.send_offer("bob", "r1", offer)
        assert await bob.recv(timeout=2) == ("offer", {"fromUserId": "alice", "offer": offer, "roomId": "r1"})

        await bob.close()
        assert await alice.recv(timeout=2) == (
            "opponentDisconnected", {"roomId": "r1", "disconnectedUserId": "bob"})
        assert orchestrator.connections.resolve("bob") is None
        assert orchestrator.rooms.participants("r1") != []
    finally:
        await alice.close()
        await bob.close()

    await settle(orchestrator, lambda: "r1" not in orchestrator.rooms)


async def test_third_client_is_told_room_is_full(server_url):
    url, _ = server_url
    clients = [await SignalingClient.connect(url) for _ in range(3)]
    try:
        for name, c in zip(("alice", "bob", "carol"), clients):
            await c.register(name)
        await clients[0].join_room("r1", "alice")
        await clients[0].recv(timeout=2)
        await clients[1].join_room("r1", "bob")
        await clients[1].recv(timeout=2)

        await clients[2].join_room("r1", "carol")
        assert await clients[2].recv(timeout=2) == ("roomFull", None)
    finally:
        for c in clients:
            await c.close()


async def test_garbage_frames_get_an_error_and_keep_the_socket_open(server_url):
    url, _ = server_url
    async with websockets.connect(url) as ws:
        await ws.send("not json")
        frame = json.loads(await asyncio.wait_for(ws.recv(), 2))
        assert frame["event"] == "error"
        assert frame["data"]["code"] == "InvalidPayload"

        await ws.send(json.dumps({"event": "joinRoom", "data": {"roomId": "r9", "userId": "zed"}}))
        frame = json.loads(await asyncio.wait_for(ws.recv(), 2))
        assert frame == {"event": "waitingForOpponent"}
