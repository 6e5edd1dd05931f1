"""
Lifecycle of the single websocket connection to the collector.

One coroutine owns the socket. After registering, it waits on whichever of
the scheduler tick or the next inbound frame is ready first, processes that
event to completion, then waits again. Outbound frames are therefore sent
strictly in order and never concurrently.
"""

import asyncio
import logging
from enum import Enum
from typing import Callable, Optional

import aiohttp

from mesh_agent.errors import ConnectFailure, SendFailure
from mesh_agent.frames import (
    EVENT_METRICS,
    EVENT_REGISTER,
    EVENT_REGISTER_ACK,
    InboundMessage,
    encode_frame,
    parse_inbound,
)
from mesh_agent.scheduler import Scheduler
from mesh_agent.snapshot import NodeInfo, SnapshotBuilder

logger = logging.getLogger(__name__)

MessageHandler = Callable[[InboundMessage], None]
SentHook = Callable[[str, NodeInfo], None]


class State(Enum):
    DISCONNECTED = 'disconnected'
    CONNECTING = 'connecting'
    REGISTERED = 'registered'
    STREAMING = 'streaming'
    CLOSED = 'closed'


class CloseReason(Enum):
    """Why the streaming loop ended"""
    REMOTE_CLOSED = 'remote_closed'
    END_OF_STREAM = 'end_of_stream'
    RECEIVE_ERROR = 'receive_error'
    SEND_FAILED = 'send_failed'


def log_inbound(message: InboundMessage) -> None:
    """Default inbound handler: surface the frame to the log"""
    if message.event == EVENT_REGISTER_ACK:
        ack_id = message.data.get('id') if isinstance(message.data, dict) else None
        logger.info("Registration acknowledged", extra={'context': {'ack_id': ack_id}})
        return

    logger.info(f"Received: {message.raw}", extra={'context': {'event': message.event}})


class ConnectionLifecycle:
    """Connects, registers, then streams metrics until the socket ends"""

    def __init__(
        self,
        url: str,
        builder: SnapshotBuilder,
        scheduler: Scheduler,
        on_message: Optional[MessageHandler] = None,
        on_sent: Optional[SentHook] = None
    ):
        self.url = url
        self.builder = builder
        self.scheduler = scheduler
        self.on_message = on_message or log_inbound
        self.on_sent = on_sent
        self.state = State.DISCONNECTED
        self.frames_sent = 0
        self._ws: Optional[aiohttp.ClientWebSocketResponse] = None

    async def run(self) -> CloseReason:
        """
        Drive the whole lifecycle.

        Raises:
            ConnectFailure: the endpoint could not be reached
            SendFailure: the registration frame could not be sent
            MetricsFailure: a snapshot could not be built

        Returns:
            The reason streaming ended
        """
        # No timeouts anywhere: a connect or send blocks until it completes or fails
        timeout = aiohttp.ClientTimeout(total=None)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            await self.connect(session)
            try:
                await self.register()
                return await self.stream()
            finally:
                await self.close()

    async def connect(self, session: aiohttp.ClientSession) -> None:
        self.state = State.CONNECTING
        logger.info("Connecting to collector", extra={'context': {'url': self.url}})

        try:
            self._ws = await session.ws_connect(self.url, autoping=True)
        except (aiohttp.ClientError, OSError, asyncio.TimeoutError) as e:
            self.state = State.CLOSED
            raise ConnectFailure(self.url, str(e) or type(e).__name__) from e

        logger.info("Connected to collector", extra={'context': {'url': self.url}})

    async def register(self) -> NodeInfo:
        node = self.builder.build()
        await self._send(EVENT_REGISTER, node)
        self.state = State.REGISTERED
        return node

    async def stream(self) -> CloseReason:
        """Multiplex scheduler ticks and inbound frames until the socket ends"""
        self.state = State.STREAMING
        tick: Optional[asyncio.Future] = None
        inbound: Optional[asyncio.Future] = None

        try:
            while True:
                if tick is None:
                    tick = asyncio.ensure_future(self.scheduler.wait())
                if inbound is None:
                    inbound = asyncio.ensure_future(self._ws.receive())

                done, _ = await asyncio.wait({tick, inbound}, return_when=asyncio.FIRST_COMPLETED)

                # A terminal inbound event wins over a tick that fired in the same instant
                if inbound in done:
                    reason = self._handle_frame(inbound)
                    inbound = None
                    if reason is not None:
                        return reason

                if tick in done:
                    tick.result()
                    tick = None
                    node = self.builder.build()
                    try:
                        await self._send(EVENT_METRICS, node)
                    except SendFailure as e:
                        logger.error(str(e))
                        return CloseReason.SEND_FAILED
        finally:
            pending = [task for task in (tick, inbound) if task is not None]
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)
            self.state = State.CLOSED

    async def close(self) -> None:
        if self._ws is not None and not self._ws.closed:
            await self._ws.close()
        self.state = State.CLOSED

    async def _send(self, event: str, node: NodeInfo) -> None:
        try:
            await self._ws.send_str(encode_frame(event, node))
        except (aiohttp.ClientError, ConnectionError) as e:
            raise SendFailure(event, str(e) or type(e).__name__) from e

        self.frames_sent += 1
        if self.on_sent:
            self.on_sent(event, node)

    def _handle_frame(self, inbound: asyncio.Future) -> Optional[CloseReason]:
        """Process one receive result; returns a reason when the session is over"""
        try:
            msg = inbound.result()
        except (aiohttp.ClientError, ConnectionError) as e:
            logger.error(f"WebSocket error: {e}")
            return CloseReason.RECEIVE_ERROR

        if msg.type == aiohttp.WSMsgType.TEXT:
            self.on_message(parse_inbound(msg.data))
            return None

        if msg.type == aiohttp.WSMsgType.BINARY:
            logger.debug("Ignoring binary frame", extra={'context': {'bytes': len(msg.data)}})
            return None

        if msg.type in (aiohttp.WSMsgType.CLOSE, aiohttp.WSMsgType.CLOSING):
            logger.info("Server closed connection", extra={'context': {'code': self._ws.close_code}})
            return CloseReason.REMOTE_CLOSED

        if msg.type == aiohttp.WSMsgType.CLOSED:
            logger.info("Connection ended")
            return CloseReason.END_OF_STREAM

        if msg.type == aiohttp.WSMsgType.ERROR:
            logger.error(f"WebSocket error: {msg.data}")
            return CloseReason.RECEIVE_ERROR

        # Ping and pong are answered by aiohttp
        return None
