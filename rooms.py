import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)

MAX_CLIENTS_PER_ROOM = 2


class JoinStatus(Enum):
    FULL = "full"
    ALREADY_JOINED = "already_joined"
    WAITING = "waiting"
    READY = "ready"


class LeaveStatus(Enum):
    REMAINING = "remaining"    # a peer is still in the room
    ROOM_GONE = "room_gone"    # the room was emptied and deleted
    NOT_PRESENT = "not_present"


@dataclass
class Room:
    room_id: str
    participants: List[str] = field(default_factory=list)
    initiator: Optional[str] = None
    # handle -> user id recorded when the handle joined
    user_ids: Dict[str, str] = field(default_factory=dict)

    @property
    def initiator_user_id(self):
        return self.user_ids.get(self.initiator)


@dataclass
class JoinResult:
    status: JoinStatus
    initiator_user_id: Optional[str] = None


@dataclass
class LeaveResult:
    status: LeaveStatus
    room_id: str
    user_id: Optional[str] = None      # recorded id of the handle that left
    remaining: Optional[str] = None


class RoomRegistry:
    """Two-party rooms keyed by a caller chosen room id.

    A room exists only while it has at least one participant. The first
    handle to join a room object becomes its initiator for as long as the
    object lives; deleting an emptied room resets that.
    """

    def __init__(self, capacity=MAX_CLIENTS_PER_ROOM):
        self.capacity = capacity
        self._rooms: Dict[str, Room] = {}

    def __len__(self):
        return len(self._rooms)

    def __contains__(self, room_id):
        return room_id in self._rooms

    def get(self, room_id) -> Optional[Room]:
        return self._rooms.get(room_id)

    def participants(self, room_id):
        room = self._rooms.get(room_id)
        return list(room.participants) if room else []

    def join(self, room_id, handle, user_id) -> JoinResult:
        room = self._rooms.get(room_id)
        if room is None:
            room = Room(room_id)
            self._rooms[room_id] = room
            logger.info("Room %s created by %s", room_id, user_id)

        if len(room.participants) >= self.capacity:
            logger.warning("Room %s is full, rejecting %s", room_id, user_id)
            return JoinResult(JoinStatus.FULL)

        if handle in room.participants:
            logger.info("%s is already in room %s", user_id, room_id)
            return JoinResult(JoinStatus.ALREADY_JOINED)

        room.participants.append(handle)
        room.user_ids[handle] = user_id
        if room.initiator is None:
            room.initiator = handle
        logger.info("%s joined room %s (%d/%d)", user_id, room_id,
                    len(room.participants), self.capacity)

        if len(room.participants) == self.capacity:
            return JoinResult(JoinStatus.READY, room.initiator_user_id)
        return JoinResult(JoinStatus.WAITING)

    def leave(self, room_id, handle) -> LeaveResult:
        room = self._rooms.get(room_id)
        if room is None or handle not in room.participants:
            return LeaveResult(LeaveStatus.NOT_PRESENT, room_id)

        room.participants.remove(handle)
        user_id = room.user_ids.get(handle)
        # keep the initiator's recorded id, it is still reported on a later ready
        if handle != room.initiator:
            room.user_ids.pop(handle, None)

        if not room.participants:
            del self._rooms[room_id]
            logger.info("Room %s is empty, deleted", room_id)
            return LeaveResult(LeaveStatus.ROOM_GONE, room_id, user_id)

        return LeaveResult(LeaveStatus.REMAINING, room_id, user_id, room.participants[0])

    def leave_all(self, handle) -> List[LeaveResult]:
        """Remove ``handle`` from every room it occupies."""
        occupied = [room_id for room_id, room in self._rooms.items() if handle in room.participants]
        return [self.leave(room_id, handle) for room_id in occupied]
