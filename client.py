"""Small client for the signaling socket and the upload service."""
import argparse
import asyncio
import json
import logging
import os

import requests
import websockets

import protocol
from config import LOG_FORMAT, load_settings

logger = logging.getLogger(__name__)


class SignalingClient:

    def __init__(self, ws):
        self.ws = ws

    @classmethod
    async def connect(cls, url):
        return cls(await websockets.connect(url))

    async def close(self):
        await self.ws.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.close()

    async def send(self, event, data=None):
        await self.ws.send(protocol.encode(event, data))

    async def recv(self, timeout=None):
        """Wait for the next frame and return ``(event, data)``."""
        raw = await asyncio.wait_for(self.ws.recv(), timeout)
        return protocol.decode(raw)

    async def register(self, user_id):
        await self.send(protocol.REGISTER, user_id)

    async def join_room(self, room_id, user_id):
        await self.send(protocol.JOIN_ROOM, {"roomId": room_id, "userId": user_id})

    async def send_offer(self, to_user_id, room_id, offer):
        await self.send(protocol.OFFER, {"toUserId": to_user_id, "offer": offer, "roomId": room_id})

    async def send_answer(self, to_user_id, room_id, answer):
        await self.send(protocol.ANSWER, {"toUserId": to_user_id, "answer": answer, "roomId": room_id})

    async def send_ice_candidate(self, to_user_id, room_id, candidate):
        await self.send(protocol.ICE_CANDIDATE,
                        {"toUserId": to_user_id, "candidate": candidate, "roomId": room_id})

    async def end_call(self, to_user_id, room_id):
        await self.send(protocol.CALL_END, {"toUserId": to_user_id, "roomId": room_id})


def upload_recording(base_url, path, field="audio", **fields):
    """POST ``path`` to the upload service and return the decoded JSON reply."""
    with open(path, "rb") as f:
        r = requests.post(base_url.rstrip("/") + "/upload-audio",
                          files={field: (os.path.basename(path), f)},
                          data=fields)
    r.raise_for_status()
    return r.json()


async def listen(url, user_id, room_id):
    async with await SignalingClient.connect(url) as client:
        logger.info("Connected to %s as %s", url, user_id)
        await client.register(user_id)
        await client.join_room(room_id, user_id)
        while True:
            event, data = await client.recv()
            print(event, json.dumps(data) if data is not None else "")


def main(argv=None):
    settings = load_settings()
    parser = argparse.ArgumentParser(description="Signaling client")
    parser.add_argument("--url", default=f"ws://localhost:{settings.socket_port}")
    parser.add_argument("--user", required=True, help="user id to register as")
    parser.add_argument("--room", help="room to join and listen in")
    parser.add_argument("--upload", metavar="FILE", help="upload a recording and exit")
    parser.add_argument("--upload-url", default=f"http://localhost:{settings.upload_port}")
    args = parser.parse_args(argv)

    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)

    if args.upload:
        print(json.dumps(upload_recording(args.upload_url, args.upload, settings.upload_field,
                                          userId=args.user), indent=2))
        return
    if not args.room:
        parser.error("--room is required unless --upload is given")
    try:
        asyncio.run(listen(args.url, args.user, args.room))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
