"""Media and transport interfaces the negotiation engine drives.

Concrete implementations wrap a WebRTC stack; tests use in-memory fakes.
"""

from collections.abc import Sequence
from typing import Protocol


class MediaTrack(Protocol):
    kind: str

    def stop(self) -> None: ...


class MediaDevices(Protocol):
    async def capture_audio(self) -> Sequence[MediaTrack]:
        """Open the microphone and return its tracks."""
        ...


class EventChannel(Protocol):
    """Bidirectional data channel carrying JSON events."""

    def send(self, data: str) -> None: ...

    def close(self) -> None: ...


class TransportObserver(Protocol):
    """Receives transport signals. Called on the event loop, in arrival order."""

    def on_connection_state(self, state: str) -> None: ...

    def on_remote_track(self, track: MediaTrack) -> None: ...

    def on_channel_open(self) -> None: ...

    def on_channel_message(self, data: str | bytes) -> None: ...

    def on_channel_close(self) -> None: ...


class PeerTransport(Protocol):
    def add_track(self, track: MediaTrack) -> None: ...

    def create_event_channel(self, label: str) -> EventChannel: ...

    async def create_offer(self) -> str:
        """Create a local offer and return its SDP."""
        ...

    async def set_local_description(self, sdp: str) -> None: ...

    async def set_remote_description(self, sdp: str) -> None: ...

    async def close(self) -> None: ...


class TransportFactory(Protocol):
    def create_peer(self, observer: TransportObserver) -> PeerTransport: ...
