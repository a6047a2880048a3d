import pytest

from connections import ConnectionRegistry
from errors import TargetOffline
from relay import SignalingRelay


@pytest.fixture
def outbox():
    return []


@pytest.fixture
def relay(outbox):
    connections = ConnectionRegistry()
    connections.register("alice", "h1")
    connections.register("bob", "h2")

    async def emit(handle, event, data=None):
        outbox.append((handle, event, data))

    return SignalingRelay(connections, emit)


@pytest.mark.parametrize("kind,key", [
    ("offer", "offer"),
    ("answer", "answer"),
    ("iceCandidate", "candidate"),
])
async def test_relay_delivers_to_target_only(relay, outbox, kind, key):
    blob = {"sdp": "v=0", "nested": [1, 2, {"x": None}]}
    await relay.relay(kind, "alice", "bob", "r1", blob)
    assert outbox == [("h2", kind, {"fromUserId": "alice", key: blob, "roomId": "r1"})]
    assert outbox[0][2][key] is blob


async def test_relay_to_offline_user_raises(relay, outbox):
    with pytest.raises(TargetOffline) as info:
        await relay.relay("offer", "alice", "carol", "r1", {})
    assert info.value.user_id == "carol"
    assert outbox == []


async def test_call_end(relay, outbox):
    await relay.call_end("alice", "bob", "r1")
    assert outbox == [("h2", "callEnd", {"fromUserId": "alice"})]


async def test_relay_preserves_sender_order(relay, outbox):
    for i in range(5):
        await relay.relay("iceCandidate", "alice", "bob", "r1", {"n": i})
    assert [data["candidate"]["n"] for _, _, data in outbox] == list(range(5))
