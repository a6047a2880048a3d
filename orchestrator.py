"""Session controller for the signaling socket.

Owns the connection and room registries and drives them from inbound
events. One instance serves the whole process; the transport adapter calls
``connect`` / ``dispatch`` / ``disconnect`` for each client.
"""
import asyncio
import logging

import protocol
from connections import ConnectionRegistry
from errors import NotRegistered, SignalingError, TargetOffline, UnknownEvent
from relay import SignalingRelay
from rooms import JoinStatus, LeaveStatus, RoomRegistry

logger = logging.getLogger(__name__)


class SessionOrchestrator:

    def __init__(self, connections=None, rooms=None):
        self.connections = connections if connections is not None else ConnectionRegistry()
        self.rooms = rooms if rooms is not None else RoomRegistry()
        self.relay = SignalingRelay(self.connections, self.emit)
        self._channels = {}   # handle -> async send(event, data)
        self._groups = {}     # room_id -> set of handles receiving room broadcasts
        self._superseded = set()
        # serializes room state changes; notifications are sent after release
        self._lock = asyncio.Lock()

    def connect(self, handle, send):
        self._channels[handle] = send
        logger.info("Client connected: %s", handle)

    def is_connected(self, handle):
        return handle in self._channels

    def group(self, room_id):
        return set(self._groups.get(room_id, ()))

    async def emit(self, handle, event, data=None):
        send = self._channels.get(handle)
        if send is None:
            logger.warning("Dropping %s for closed connection %s", event, handle)
            return
        await send(event, data)

    async def deliver(self, outbox):
        for handle, event, data in outbox:
            await self.emit(handle, event, data)

    async def report(self, handle, exc):
        """Send ``exc`` back to the connection that caused it."""
        logger.warning("Rejected %s from %s: %s", exc.event, handle, exc.message)
        await self.emit(handle, protocol.ERROR, exc.to_payload())

    async def dispatch(self, handle, event, data=None):
        """Handle one inbound event; errors go back to the sender only."""
        try:
            if event == protocol.REGISTER:
                self.register(handle, protocol.parse_register(data))
            elif event == protocol.JOIN_ROOM:
                room_id, user_id = protocol.parse_join(data)
                await self.join_room(handle, room_id, user_id)
            elif event in protocol.RELAY_KINDS:
                to_user_id, room_id, blob = protocol.parse_relay(event, data)
                await self.relay_message(handle, event, to_user_id, room_id, blob)
            elif event == protocol.CALL_END:
                to_user_id, room_id = protocol.parse_call_end(data)
                await self.call_end(handle, to_user_id, room_id)
            else:
                raise UnknownEvent(f"unknown event {event!r}", event)
        except TargetOffline as exc:
            logger.warning("%s: target %s is offline, message dropped", exc.event, exc.user_id)
        except SignalingError as exc:
            await self.report(handle, exc)

    def register(self, handle, user_id):
        previous = self.connections.register(user_id, handle)
        self._superseded.discard(handle)
        if previous is not None:
            self._superseded.add(previous)
            logger.warning("User %s re-registered from %s, superseding %s", user_id, handle, previous)
        else:
            logger.info("User %s registered (connection %s)", user_id, handle)
        return previous

    def _sender(self, handle, event):
        user_id = self.connections.user_of(handle)
        if user_id is None:
            raise NotRegistered("register before sending signaling messages", event)
        return user_id

    async def join_room(self, handle, room_id, user_id):
        # a registered connection joins under its registered id
        user_id = self.connections.user_of(handle) or user_id

        outbox = []
        async with self._lock:
            result = self.rooms.join(room_id, handle, user_id)

            if result.status is JoinStatus.FULL:
                outbox.append((handle, protocol.ROOM_FULL, None))
            elif result.status is JoinStatus.ALREADY_JOINED:
                pass
            else:
                self._groups.setdefault(room_id, set()).add(handle)
                if result.status is JoinStatus.READY:
                    logger.info("Room %s ready, caller: %s", room_id, result.initiator_user_id)
                    ready = {"callerId": result.initiator_user_id}
                    outbox.extend((h, protocol.READY_FOR_CALL, ready) for h in sorted(self.group(room_id)))
                else:
                    outbox.append((handle, protocol.WAITING_FOR_OPPONENT, None))

        await self.deliver(outbox)
        return result

    async def relay_message(self, handle, kind, to_user_id, room_id, blob):
        from_user_id = self._sender(handle, kind)
        await self.relay.relay(kind, from_user_id, to_user_id, room_id, blob)

    async def call_end(self, handle, to_user_id, room_id):
        try:
            from_user_id = self._sender(handle, protocol.CALL_END)
            await self.relay.call_end(from_user_id, to_user_id, room_id)
        finally:
            async with self._lock:
                self._leave(room_id, handle)

    def _leave(self, room_id, handle):
        result = self.rooms.leave(room_id, handle)
        self._leave_group(room_id, handle)
        return result

    def _leave_group(self, room_id, handle):
        group = self._groups.get(room_id)
        if group is not None:
            group.discard(handle)
            if not group:
                del self._groups[room_id]

    async def disconnect(self, handle):
        outbox = []
        async with self._lock:
            self._channels.pop(handle, None)
            user_id = self.connections.unregister(handle)
            if user_id is not None:
                logger.info("User %s (connection %s) disconnected", user_id, handle)
            elif handle in self._superseded:
                logger.info("Superseded connection %s disconnected", handle)
            else:
                logger.warning("Unknown client %s disconnected", handle)
            self._superseded.discard(handle)

            for room_id in [r for r, group in self._groups.items() if handle in group]:
                self._leave_group(room_id, handle)

            for result in self.rooms.leave_all(handle):
                if result.status is not LeaveStatus.REMAINING:
                    continue
                departed = user_id or result.user_id
                logger.info("Notifying room %s that %s left", result.room_id, departed)
                outbox.append((result.remaining, protocol.OPPONENT_DISCONNECTED,
                               {"roomId": result.room_id, "disconnectedUserId": departed}))

        await self.deliver(outbox)
        return user_id
