import asyncio
import contextlib
import logging
import uuid

import websockets
from websockets.exceptions import ConnectionClosed

import protocol
from config import LOG_FORMAT, load_settings
from errors import SignalingError
from orchestrator import SessionOrchestrator

logger = logging.getLogger(__name__)


def make_sender(ws, handle):
    async def send(event, data=None):
        try:
            await ws.send(protocol.encode(event, data))
        except ConnectionClosed:
            logger.warning("Connection %s closed before %s could be delivered", handle, event)
    return send


def make_handler(orchestrator):
    async def handler(ws):
        handle = uuid.uuid4().hex
        orchestrator.connect(handle, make_sender(ws, handle))
        try:
            async for raw in ws:
                try:
                    event, data = protocol.decode(raw)
                except SignalingError as exc:
                    await orchestrator.report(handle, exc)
                    continue
                await orchestrator.dispatch(handle, event, data)
        except ConnectionClosed as exc:
            logger.info("Connection %s closed: %s", handle, exc)
        finally:
            await orchestrator.disconnect(handle)
    return handler


@contextlib.asynccontextmanager
async def serve(orchestrator, host, port):
    async with websockets.serve(make_handler(orchestrator), host, port) as server:
        yield server


async def main(settings=None):
    settings = settings or load_settings()
    orchestrator = SessionOrchestrator()
    async with serve(orchestrator, settings.socket_host, settings.socket_port):
        logger.info("Signaling server running on ws://%s:%s", settings.socket_host, settings.socket_port)
        await asyncio.Future()


def run():
    settings = load_settings()
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)
    try:
        asyncio.run(main(settings))
    except KeyboardInterrupt:
        logger.info("Signaling server stopped")


if __name__ == "__main__":
    run()
