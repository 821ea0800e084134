"""Client-side session negotiation state machine.

One ``NegotiationSession`` drives a single conversation attempt::

    idle -> requesting -> awaiting_credential -> negotiating -> connected -> closing -> closed

``failed`` can be reached from any non-terminal state and is final for the instance.
The ephemeral credential is consumed by the one offer/answer exchange, so a retry
always means a new ``NegotiationSession`` and a new credential.
"""

import asyncio
import json
from collections.abc import Callable, Coroutine
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

import httpx
import structlog

from parlote.client.api import BackendClient, RealtimeNegotiator
from parlote.client.events import ErrorEvent, ServerEvent, TextDelta, TextDone, TranscriptionCompleted, decode_event, user_text_messages
from parlote.client.logbuffer import EventLogBuffer
from parlote.client.pump import UsagePump
from parlote.client.transcript import Role, Transcript, format_remaining
from parlote.client.transport import EventChannel, MediaDevices, MediaTrack, PeerTransport, TransportFactory
from parlote.core.modules.realtime.models import SessionDescriptor
from parlote.core.modules.situation.models import Situation
from parlote.core.modules.usage.models import UsageReport
from parlote.errors import TransportFailure, UserError

logger = structlog.get_logger(__name__)

EVENT_CHANNEL_LABEL = "oai-events"


class SessionState(StrEnum):
    IDLE = "idle"
    REQUESTING = "requesting"
    AWAITING_CREDENTIAL = "awaiting_credential"
    NEGOTIATING = "negotiating"
    CONNECTED = "connected"
    CLOSING = "closing"
    CLOSED = "closed"
    FAILED = "failed"


TERMINAL_STATES = frozenset({SessionState.CLOSED, SessionState.FAILED})
LIVE_STATES = frozenset({SessionState.NEGOTIATING, SessionState.CONNECTED})


@dataclass
class StatusLine:
    connected: bool = False
    note: str = "Choose a situation and click start."


def resolve_prompt_override(situation: Situation, edited_prompt: str | None) -> str:
    """Send the edited prompt only when it differs from the stored one."""
    if edited_prompt is None or edited_prompt.strip() == situation.prompt:
        return ""
    return edited_prompt.strip()


class NegotiationSession:
    """Negotiates one realtime conversation and owns everything it opens."""

    def __init__(
        self,
        backend: BackendClient,
        negotiator: RealtimeNegotiator,
        devices: MediaDevices,
        transports: TransportFactory,
        *,
        ping_interval: float = 10.0,
        ping_increment: int = 10,
    ) -> None:
        self._backend = backend
        self._negotiator = negotiator
        self._devices = devices
        self._transports = transports
        self._ping_interval = ping_interval
        self._ping_increment = ping_increment

        self.state = SessionState.IDLE
        self.status = StatusLine()
        self.transcript = Transcript()
        self.descriptor: SessionDescriptor | None = None
        self.remaining_seconds: int | None = None
        self.error: UserError | None = None
        self.remote_tracks: list[MediaTrack] = []

        self.situation: Situation | None = None
        self._local_tracks: list[MediaTrack] = []
        self._peer: PeerTransport | None = None
        self._channel: EventChannel | None = None
        self._pump: UsagePump | None = None
        self._log: EventLogBuffer | None = None
        self._background: set[asyncio.Task[Any]] = set()

    @property
    def start_enabled(self) -> bool:
        """Whether the UI should offer to start (a new session, when this one has ended).

        Stays off while teardown scheduled by a transport signal is still running.
        """
        if self._background:
            return False
        return self.state in TERMINAL_STATES or self.state is SessionState.IDLE

    @property
    def pump(self) -> UsagePump | None:
        return self._pump

    # === Lifecycle ===

    async def start(self, situation: Situation | None, access_token: str | None, edited_prompt: str | None = None) -> None:
        """Request a credential and negotiate the media transport.

        Without a situation or an access token the session stays idle and a guidance
        line is added to the transcript.
        """
        if self.state is not SessionState.IDLE:
            raise RuntimeError(f"Cannot start a session in state '{self.state}'")
        if situation is None:
            self.transcript.add(Role.SYSTEM, "Choose a situation before starting.")
            return
        if not access_token:
            self.transcript.add(Role.SYSTEM, "Please sign in before starting.")
            return

        self.situation = situation
        self._set_state(SessionState.REQUESTING)
        self._set_status(False, "Requesting session...")
        prompt_override = resolve_prompt_override(situation, edited_prompt)

        self._set_state(SessionState.AWAITING_CREDENTIAL)
        try:
            descriptor = await self._backend.create_session(access_token, situation.id, prompt_override)
        except (UserError, httpx.HTTPError) as e:
            await self._fail(e if isinstance(e, UserError) else TransportFailure(f"Backend unreachable: {e}"))
            return
        except Exception as e:
            logger.exception("session_request_error")
            await self._fail(TransportFailure(str(e)))
            return
        if self.state is not SessionState.AWAITING_CREDENTIAL:
            return

        self.descriptor = descriptor
        self.remaining_seconds = descriptor.remaining_seconds
        self._set_status(False, format_remaining(descriptor.remaining_seconds))
        self._log = EventLogBuffer(self._backend, descriptor.session_id, situation.id)
        self._pump = UsagePump(
            self._backend, access_token, self._on_usage_report, interval=self._ping_interval, increment=self._ping_increment
        )

        self._set_state(SessionState.NEGOTIATING)
        try:
            await self._negotiate(descriptor)
        except UserError as e:
            await self._fail(e)
            return
        except Exception as e:
            logger.exception("negotiation_error")
            await self._fail(TransportFailure(str(e)))
            return

        if self.state in LIVE_STATES:
            self.transcript.add(Role.SYSTEM, "Connection ready. You can speak.")

    async def stop(self, note: str = "Session ended.") -> None:
        """Close the session: release media, transport, pump, then flush the log."""
        if self.state is SessionState.IDLE:
            self._set_state(SessionState.CLOSED)
            return
        if self.state in TERMINAL_STATES or self.state is SessionState.CLOSING:
            return

        self._begin_closing()
        await self._finish_closing(note)

    async def wait_closed(self) -> None:
        """Wait for teardown work scheduled by transport signals."""
        while self._background:
            await asyncio.gather(*self._background, return_exceptions=True)

    # === Outbound ===

    def send_text(self, text: str, from_suggestion: bool = False) -> bool:
        """Submit learner text: a conversation item, then a response request.

        Suggested phrases are already visible, so they are not echoed in the transcript.
        """
        if self.state is not SessionState.CONNECTED or self._channel is None:
            self.transcript.add(Role.SYSTEM, "Start the conversation before sending a prompt.")
            return False

        text = text.strip()
        if not text:
            return False

        if not from_suggestion:
            self.transcript.add(Role.USER, text)
        for message in user_text_messages(text):
            self._channel.send(json.dumps(message))
        return True

    # === Transport signals ===

    def on_connection_state(self, state: str) -> None:
        if state == "connected":
            self._mark_connected()
        elif state == "failed":
            self._fail_soon(TransportFailure("Connection failed. Try again."))
        elif state == "closed":
            self._close_soon()

    def on_remote_track(self, track: MediaTrack) -> None:
        self.remote_tracks.append(track)

    def on_channel_open(self) -> None:
        self._mark_connected()

    def on_channel_close(self) -> None:
        self._close_soon()

    def on_channel_message(self, data: str | bytes) -> None:
        event = decode_event(data)
        if self._log is not None:
            self._log.push(event.to_log())
        self._handle_event(event)

    # === Internals ===

    def _set_state(self, state: SessionState) -> None:
        logger.debug(
            "negotiation_state_changed",
            from_state=str(self.state),
            to_state=str(state),
            session_id=self.descriptor.session_id if self.descriptor else None,
        )
        self.state = state

    def _set_status(self, connected: bool, note: str) -> None:
        self.status = StatusLine(connected=connected, note=note)

    async def _negotiate(self, descriptor: SessionDescriptor) -> None:
        try:
            tracks = await self._devices.capture_audio()
        except Exception as e:
            raise TransportFailure(f"Microphone unavailable: {e}") from e
        self._local_tracks = list(tracks)
        if self.state is not SessionState.NEGOTIATING:
            # Stopped while the microphone was opening
            self._stop_local_tracks()
            return

        peer = self._transports.create_peer(self)
        self._peer = peer
        for track in self._local_tracks:
            peer.add_track(track)
        self._channel = peer.create_event_channel(EVENT_CHANNEL_LABEL)

        offer = await peer.create_offer()
        await peer.set_local_description(offer)
        if self.state not in LIVE_STATES:
            return

        answer = await self._negotiator.exchange(descriptor.model, descriptor.client_secret, offer)
        if self.state not in LIVE_STATES:
            return
        await peer.set_remote_description(answer)

    def _mark_connected(self) -> None:
        if self.state is not SessionState.NEGOTIATING:
            return
        self._set_state(SessionState.CONNECTED)
        self._set_status(True, "Conversation active. Speak when you are ready.")
        if self._pump is not None:
            self._pump.start()

    def _handle_event(self, event: ServerEvent) -> None:
        if isinstance(event, TextDelta):
            self.transcript.append_fragment(event.delta)
        elif isinstance(event, TextDone):
            if self.transcript.complete_fragment() is not None and self._log is not None:
                self._log.flush()
        elif isinstance(event, TranscriptionCompleted):
            if event.transcript:
                self.transcript.add(Role.USER, event.transcript)
        elif isinstance(event, ErrorEvent):
            self.transcript.add(Role.SYSTEM, f"Realtime error: {event.description}")

    async def _on_usage_report(self, report: UsageReport) -> None:
        self.remaining_seconds = report.remaining_seconds
        if self.state is not SessionState.CONNECTED:
            return
        self._set_status(True, format_remaining(report.remaining_seconds))
        if report.remaining_seconds <= 0:
            self.transcript.add(Role.SYSTEM, "Daily limit reached.")
            await self.stop("Daily limit reached.")

    def _enter_failed(self, error: UserError) -> bool:
        if self.state in TERMINAL_STATES:
            return False
        self.error = error
        self._set_state(SessionState.FAILED)
        self._set_status(False, "Failed to connect. Try again.")
        self.transcript.add(Role.SYSTEM, f"Error: {error}")
        logger.warning("negotiation_failed", error=str(error), error_type=type(error).__name__)
        return True

    async def _fail(self, error: UserError) -> None:
        if self._enter_failed(error):
            await self._teardown()

    def _fail_soon(self, error: UserError) -> None:
        if self._enter_failed(error):
            self._schedule(self._teardown())

    def _close_soon(self) -> None:
        if self.state in LIVE_STATES:
            self._begin_closing()
            self._schedule(self._finish_closing("Connection closed."))

    def _begin_closing(self) -> None:
        self._set_state(SessionState.CLOSING)

    async def _finish_closing(self, note: str) -> None:
        await self._teardown()
        # A failure signalled during teardown wins over a clean close
        if self.state is SessionState.CLOSING:
            self._set_state(SessionState.CLOSED)
            self._set_status(False, note)

    def _schedule(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    def _stop_local_tracks(self) -> None:
        tracks, self._local_tracks = self._local_tracks, []
        for track in tracks:
            try:
                track.stop()
            except Exception:
                logger.exception("media_track_stop_failed", kind=getattr(track, "kind", None))

    async def _close_transport(self) -> None:
        channel, self._channel = self._channel, None
        peer, self._peer = self._peer, None
        if channel is not None:
            try:
                channel.close()
            except Exception:
                logger.exception("event_channel_close_failed")
        if peer is not None:
            await peer.close()

    def _stop_pump(self) -> None:
        if self._pump is not None:
            self._pump.stop()

    async def _flush_log(self) -> None:
        if self._log is not None:
            self._log.flush()
            await self._log.drain()

    async def _teardown(self) -> None:
        """Release everything this session opened. Each step runs even if an earlier one raised."""
        steps: list[tuple[str, Callable[[], Any]]] = [
            ("stop_media", self._stop_local_tracks),
            ("close_transport", self._close_transport),
            ("stop_pump", self._stop_pump),
            ("flush_log", self._flush_log),
        ]
        for name, step in steps:
            try:
                result = step()
                if asyncio.iscoroutine(result):
                    await result
            except Exception:
                logger.exception("teardown_step_failed", step=name)
