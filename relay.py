import logging

import protocol
from errors import TargetOffline

logger = logging.getLogger(__name__)


class SignalingRelay:
    """Forwards offers, answers and ICE candidates one hop, by user id.

    The relay keeps no state of its own. It resolves the target through the
    connection registry it is given and hands the outbound frame to
    ``emit(handle, event, data)``. Payloads are passed through untouched.
    """

    def __init__(self, connections, emit):
        self.connections = connections
        self.emit = emit

    async def relay(self, kind, from_user_id, to_user_id, room_id, blob):
        target = self.connections.resolve(to_user_id)
        if target is None:
            raise TargetOffline(to_user_id, kind)

        logger.debug("%s from %s to %s in room %s", kind, from_user_id, to_user_id, room_id)
        await self.emit(target, kind, {
            "fromUserId": from_user_id,
            protocol.RELAY_KINDS[kind]: blob,
            "roomId": room_id,
        })

    async def call_end(self, from_user_id, to_user_id, room_id):
        target = self.connections.resolve(to_user_id)
        if target is None:
            raise TargetOffline(to_user_id, protocol.CALL_END)

        logger.info("Call end from %s to %s (room %s)", from_user_id, to_user_id, room_id)
        await self.emit(target, protocol.CALL_END, {"fromUserId": from_user_id})
