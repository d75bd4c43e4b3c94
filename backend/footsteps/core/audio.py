"""
Audio helpers for generated speech (raw little-endian PCM16)
"""
import base64
import binascii
import io
import struct
import wave
from typing import List


def decode_base64_to_bytes(data: str) -> bytes:
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"Invalid base64 audio payload: {e}") from e


def encode_audio(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def pcm16_to_samples(data: bytes, channels: int = 1) -> List[List[float]]:
    """
    Split interleaved PCM16 into per-channel float samples in [-1.0, 1.0).

    A trailing partial frame is dropped.
    """
    if channels < 1:
        raise ValueError("channels must be >= 1")
    frame_count = len(data) // (2 * channels)
    values = struct.unpack(f"<{frame_count * channels}h", data[:frame_count * channels * 2])
    return [
        [values[i * channels + channel] / 32768.0 for i in range(frame_count)]
        for channel in range(channels)
    ]


def pcm16_to_wav(data: bytes, sample_rate: int, channels: int = 1) -> bytes:
    """Wrap raw PCM16 in a WAV container"""
    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as wav:
        wav.setnchannels(channels)
        wav.setsampwidth(2)
        wav.setframerate(sample_rate)
        wav.writeframes(data)
    return buffer.getvalue()
