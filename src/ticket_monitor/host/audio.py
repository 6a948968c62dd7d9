"""Notification sound playback."""

from __future__ import annotations

import asyncio
import logging
import math
import platform
import shutil
import struct
import tempfile
import wave
from pathlib import Path
from typing import Awaitable, Callable

from ticket_monitor.exceptions import AudioError
from ticket_monitor.host.base import AudioPlayer

logger = logging.getLogger(__name__)

SAMPLE_RATE = 22050
BEEP_SECONDS = 0.3
BEEP_SWITCH_SECONDS = 0.1
BEEP_HIGH_HZ = 800
BEEP_LOW_HZ = 600
BEEP_FLOOR_GAIN = 0.01

# Command-line players tried in order, per platform.
_PLAYERS = {
    "Linux": [["paplay"], ["aplay", "-q"], ["pw-play"]],
    "Darwin": [["afplay"]],
}


def beep_samples(volume: float = 0.3, sample_rate: int = SAMPLE_RATE) -> list[int]:
    """Two-tone beep: 800 Hz then 600 Hz, gain decaying exponentially to 0.01."""
    volume = max(BEEP_FLOOR_GAIN, min(volume, 1.0))
    total = int(sample_rate * BEEP_SECONDS)
    decay = math.log(BEEP_FLOOR_GAIN / volume) / BEEP_SECONDS
    samples = []
    phase = 0.0
    for i in range(total):
        t = i / sample_rate
        freq = BEEP_HIGH_HZ if t < BEEP_SWITCH_SECONDS else BEEP_LOW_HZ
        phase += 2 * math.pi * freq / sample_rate
        gain = volume * math.exp(decay * t)
        samples.append(int(32767 * gain * math.sin(phase)))
    return samples


def write_wav(path: Path, samples: list[int], sample_rate: int = SAMPLE_RATE) -> None:
    with wave.open(str(path), "wb") as wav:
        wav.setnchannels(1)
        wav.setsampwidth(2)
        wav.setframerate(sample_rate)
        wav.writeframes(struct.pack(f"<{len(samples)}h", *samples))


def find_player_command(system: str | None = None) -> list[str] | None:
    for candidate in _PLAYERS.get(system or platform.system(), []):
        if shutil.which(candidate[0]):
            return candidate
    return None


class BeepPlayer(AudioPlayer):
    """Render beeps to WAV files once per volume and play them with a
    command-line player. Playback is not awaited."""

    def __init__(self, command: list[str], cache_dir: Path):
        self.command = command
        self.cache_dir = cache_dir
        self._children: set[asyncio.Task] = set()

    @classmethod
    async def create(cls, cache_dir: Path | None = None) -> BeepPlayer:
        command = find_player_command()
        if command is None:
            raise AudioError(f"No audio player found on {platform.system()}")
        if cache_dir is None:
            cache_dir = Path(tempfile.mkdtemp(prefix="ticket-monitor-audio-"))
        return cls(command, cache_dir)

    def _wav_for(self, volume: float) -> Path:
        path = self.cache_dir / f"beep-{int(volume * 100)}.wav"
        if not path.exists():
            write_wav(path, beep_samples(volume))
        return path

    async def play(self, sound_type: str = "beep", volume: float = 0.3) -> None:
        if sound_type != "beep":
            raise AudioError(f"Unsupported sound type: {sound_type}")
        try:
            path = await asyncio.to_thread(self._wav_for, volume)
        except OSError as e:
            raise AudioError(f"Cannot render beep into {self.cache_dir}: {e}") from e
        try:
            proc = await asyncio.create_subprocess_exec(
                *self.command, str(path),
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except OSError as e:
            raise AudioError(f"Cannot start {self.command[0]}: {e}") from e
        reaper = asyncio.create_task(proc.wait())
        self._children.add(reaper)
        reaper.add_done_callback(self._children.discard)


class OffscreenAudio(AudioPlayer):
    """Route playback through a player context created on first use.

    Args:
        factory: Coroutine function building the underlying player. Called
            at most once per successful creation.
    """

    def __init__(self, factory: Callable[[], Awaitable[AudioPlayer]] = BeepPlayer.create):
        self._factory = factory
        self._context: AudioPlayer | None = None
        self._lock = asyncio.Lock()

    @property
    def has_context(self) -> bool:
        return self._context is not None

    async def ensure_context(self) -> AudioPlayer:
        async with self._lock:
            if self._context is None:
                self._context = await self._factory()
                logger.debug("Created audio context %s", type(self._context).__name__)
            return self._context

    async def play(self, sound_type: str = "beep", volume: float = 0.3) -> None:
        context = await self.ensure_context()
        await context.play(sound_type, volume)
