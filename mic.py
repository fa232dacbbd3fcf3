"""
Microphone capture.

Owns the single input stream used by the recognizer. The stream callback
pushes raw int16 frames into a bounded queue which the recognition engine
drains while it is listening.
"""
import asyncio
import logging
import queue
from dataclasses import dataclass

import config

logger = logging.getLogger(__name__)

PERMISSION_ALERT = "Microphone permission is required."


@dataclass(frozen=True)
class CaptureConstraints:
    """Processing requested from the input device."""
    echo_cancellation: bool = True
    noise_suppression: bool = True
    auto_gain_control: bool = False


class MicHandle:
    """An open input stream and the frames it produced."""

    def __init__(self, stream, frames: queue.Queue):
        self.stream = stream
        self.frames = frames
        self.closed = False

    def read(self, timeout: float = 0.2):
        """Return the next frame, or None if nothing arrived within `timeout`."""
        try:
            return self.frames.get(timeout=timeout)
        except queue.Empty:
            return None

    def drain(self) -> None:
        """Drop frames captured while nobody was listening."""
        while True:
            try:
                self.frames.get_nowait()
            except queue.Empty:
                return

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        try:
            self.stream.stop()
        finally:
            self.stream.close()


def open_input_stream(constraints: CaptureConstraints, sample_rate: int = config.SAMPLE_RATE,
                      blocksize: int = 8000, device=None, max_frames: int = 50) -> MicHandle:
    """Open and start a mono int16 sounddevice input stream."""
    import sounddevice as sd

    # PortAudio has no DSP switches; a platform opener may honor these.
    logger.debug("Opening input stream with %s", constraints)
    frames = queue.Queue(maxsize=max_frames)

    def callback(indata, frame_count, time, status):
        """Callback that receives audio data from sounddevice."""
        if status:
            logger.debug("Input stream status: %s", status)
        try:
            frames.put_nowait(bytes(indata))
        except queue.Full:
            pass

    stream = sd.RawInputStream(samplerate=sample_rate, blocksize=blocksize, dtype='int16',
                               channels=1, device=device, callback=callback)
    stream.start()
    return MicHandle(stream, frames)


class AudioCapture:
    """Acquires and holds one exclusive microphone stream."""

    def __init__(self, opener=open_input_stream, constraints: CaptureConstraints = None, alert=None):
        self._opener = opener
        self.constraints = constraints or CaptureConstraints()
        self._alert = alert
        self.handle = None

    @property
    def held(self) -> bool:
        return self.handle is not None

    async def acquire(self):
        """Return the held handle, opening the device on first use.

        On failure the user is alerted and None is returned.
        """
        if self.handle is not None:
            return self.handle
        try:
            self.handle = await asyncio.to_thread(self._opener, self.constraints)
        except Exception as e:
            logger.error("Mic permission error: %s", e)
            if self._alert:
                self._alert(PERMISSION_ALERT)
            return None
        return self.handle

    def release(self) -> None:
        """Stop the stream and drop the handle. Safe when nothing is held."""
        handle, self.handle = self.handle, None
        if handle is None:
            return
        try:
            handle.close()
        except Exception:
            logger.exception("Failed to close input stream")
