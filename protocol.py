"""Wire framing and payload checks for the signaling socket.

Every frame is a JSON object ``{"event": name, "data": payload}``.
"""
import json

from errors import InvalidPayload, UnknownEvent

# inbound
REGISTER = "register"
JOIN_ROOM = "joinRoom"
OFFER = "offer"
ANSWER = "answer"
ICE_CANDIDATE = "iceCandidate"
CALL_END = "callEnd"

# outbound
ROOM_FULL = "roomFull"
WAITING_FOR_OPPONENT = "waitingForOpponent"
READY_FOR_CALL = "readyForCall"
OPPONENT_DISCONNECTED = "opponentDisconnected"
ERROR = "error"

# relay kind -> key holding the opaque blob
RELAY_KINDS = {
    OFFER: "offer",
    ANSWER: "answer",
    ICE_CANDIDATE: "candidate",
}


def encode(event, data=None):
    frame = {"event": event}
    if data is not None:
        frame["data"] = data
    return json.dumps(frame)


def decode(raw):
    """Return ``(event, data)`` for one text frame."""
    if not isinstance(raw, str):
        raise InvalidPayload("binary frames are not supported")
    try:
        frame = json.loads(raw)
    except json.JSONDecodeError:
        raise InvalidPayload("frame is not valid JSON") from None
    if not isinstance(frame, dict):
        raise InvalidPayload("frame must be a JSON object")

    event = frame.get("event")
    if not isinstance(event, str) or not event:
        raise InvalidPayload("frame has no event name")
    return event, frame.get("data")


def _require_str(data, key, event):
    value = data.get(key)
    if not isinstance(value, str) or not value:
        raise InvalidPayload(f"{key} must be a non-empty string", event)
    return value


def _require_object(data, event):
    if not isinstance(data, dict):
        raise InvalidPayload("payload must be an object", event)
    return data


def parse_register(data):
    """Return the userId carried by a ``register`` payload."""
    if isinstance(data, dict):
        return _require_str(data, "userId", REGISTER)
    if not isinstance(data, str) or not data:
        raise InvalidPayload("userId must be a non-empty string", REGISTER)
    return data


def parse_join(data):
    data = _require_object(data, JOIN_ROOM)
    return _require_str(data, "roomId", JOIN_ROOM), _require_str(data, "userId", JOIN_ROOM)


def parse_relay(kind, data):
    """Return ``(toUserId, roomId, blob)`` for an offer/answer/iceCandidate."""
    if kind not in RELAY_KINDS:
        raise UnknownEvent(f"unknown relay kind {kind!r}", kind)
    data = _require_object(data, kind)
    key = RELAY_KINDS[kind]
    if key not in data:
        raise InvalidPayload(f"{key} is required", kind)
    return _require_str(data, "toUserId", kind), _require_str(data, "roomId", kind), data[key]


def parse_call_end(data):
    data = _require_object(data, CALL_END)
    return _require_str(data, "toUserId", CALL_END), _require_str(data, "roomId", CALL_END)
