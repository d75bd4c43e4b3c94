"""
Speech playback handle

PlaybackController owns the one active clip. Anything that needs to interrupt
speech gets the controller by reference (app.state.playback) instead of
reaching for module state. Inside an event loop the controller ends each clip
itself once its duration has elapsed.
"""
import asyncio
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Optional, Protocol

from footsteps.core.audio import pcm16_to_wav
from footsteps.core.logging_config import LoggingConfig

logger = LoggingConfig.get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class SpeechClip:
    """Raw PCM16 speech"""
    audio: bytes
    sample_rate: int = 24000
    channels: int = 1
    text: str = ""

    @property
    def duration_seconds(self) -> float:
        return len(self.audio) / (2 * self.channels * self.sample_rate)

    def to_wav(self) -> bytes:
        return pcm16_to_wav(self.audio, self.sample_rate, self.channels)


class AudioSink(Protocol):
    """Somewhere a clip can be played"""

    def play(self, clip: SpeechClip) -> None: ...

    def stop(self, clip: SpeechClip) -> None: ...


class BufferedAudioSink:
    """Sink without an audio device: keeps the clip so clients can fetch it"""

    def __init__(self):
        self.clip: Optional[SpeechClip] = None

    def play(self, clip: SpeechClip) -> None:
        self.clip = clip

    def stop(self, clip: SpeechClip) -> None:
        if self.clip is clip:
            self.clip = None


@dataclass
class PlaybackHandle:
    clip: SpeechClip
    on_end: Optional[Callable[[], None]] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    started_at: datetime = field(default_factory=_utcnow)
    ended: bool = False
    timer: Optional[asyncio.TimerHandle] = None


class PlaybackController:
    """Holds at most one active playback handle"""

    def __init__(self, sink: Optional[AudioSink] = None):
        self.sink = sink if sink is not None else BufferedAudioSink()
        self._current: Optional[PlaybackHandle] = None

    @property
    def current(self) -> Optional[PlaybackHandle]:
        return self._current

    @property
    def is_playing(self) -> bool:
        return self._current is not None

    def start(self, clip: SpeechClip, on_end: Optional[Callable[[], None]] = None) -> PlaybackHandle:
        """
        Stop whatever is playing, then play `clip`.

        When called from a running event loop, finish() is scheduled for the
        end of the clip. Outside a loop the sink must call finish() itself.
        """
        self.stop_current()
        handle = PlaybackHandle(clip=clip, on_end=on_end)
        self._current = handle
        self.sink.play(clip)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None
        if loop is not None:
            handle.timer = loop.call_later(clip.duration_seconds, self.finish, handle)
        logger.debug(
            "Playback started",
            extra={"handle_id": handle.id, "duration_seconds": round(clip.duration_seconds, 2)}
        )
        return handle

    def stop_current(self) -> bool:
        """Stop the active handle. Returns False when nothing was playing."""
        handle = self._current
        if handle is None:
            return False
        self._current = None
        self.sink.stop(handle.clip)
        self._end(handle)
        return True

    def finish(self, handle: PlaybackHandle) -> None:
        """Report that `handle` reached its natural end"""
        if self._current is handle:
            self._current = None
            self.sink.stop(handle.clip)
        self._end(handle)

    @staticmethod
    def _end(handle: PlaybackHandle) -> None:
        if handle.timer is not None:
            handle.timer.cancel()
        if handle.ended:
            return
        handle.ended = True
        if handle.on_end is not None:
            handle.on_end()
