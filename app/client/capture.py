"""
Audio capture for the terminal client.

Records from a microphone with sounddevice, encodes the take with
soundfile and hands back one AudioBlob tagged with its container type.
The container choice, minimum-size guard and capture error taxonomy are
shared with the browser page (app/static/app.js).
"""

import io
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, List, Optional, Union

import numpy as np
import soundfile as sf
from loguru import logger

# Recordings below this size hold no usable speech
MIN_AUDIO_BYTES = 5 * 1024

# Ordered container preferences, first supported wins
CONTAINER_PREFERENCES = (
    "audio/webm;codecs=opus",
    "audio/webm",
    "audio/ogg;codecs=opus",
    "audio/mp4",
)

PLATFORM_DEFAULT_CONTAINER = "audio/wav"

# Containers soundfile can write: MIME type -> (format, subtype)
SOUNDFILE_FORMATS = {
    "audio/ogg;codecs=opus": ("OGG", "OPUS"),
    "audio/wav": ("WAV", "PCM_16"),
}

FILE_EXTENSIONS = {
    "audio/webm": "webm",
    "audio/ogg": "ogg",
    "audio/mp4": "mp4",
    "audio/wav": "wav",
    "audio/mpeg": "mp3",
}


class CaptureErrorKind(str, Enum):
    """User-facing categories of microphone failures."""

    PERMISSION_DENIED = "permission_denied"
    NO_DEVICE = "no_device"
    INSECURE_CONTEXT = "insecure_context"
    GENERIC = "generic"


CAPTURE_ERROR_MESSAGES = {
    CaptureErrorKind.PERMISSION_DENIED: (
        "Microphone access was denied. Please allow microphone access and try again."
    ),
    CaptureErrorKind.NO_DEVICE: (
        "No microphone was found. Please connect a microphone and try again."
    ),
    CaptureErrorKind.INSECURE_CONTEXT: (
        "Microphone access needs a secure connection. Open the app over HTTPS or on localhost."
    ),
    CaptureErrorKind.GENERIC: "Could not start recording. Please try again.",
}

PERMISSION_ERROR_NAMES = {"NotAllowedError", "SecurityError", "PermissionDeniedError"}
NO_DEVICE_ERROR_NAMES = {"NotFoundError", "DevicesNotFoundError", "OverconstrainedError"}

NO_SPEECH_MESSAGE = "No speech captured. Hold the button a little longer and try again."


class CaptureError(Exception):
    """Recording could not start or finish."""

    def __init__(self, kind: CaptureErrorKind, detail: Optional[str] = None):
        self.kind = kind
        self.detail = detail
        self.message = CAPTURE_ERROR_MESSAGES[kind]
        super().__init__(self.message)


def classify_capture_error(
    error_name: Optional[str], secure_context: bool = True
) -> CaptureErrorKind:
    """
    Map a reported error name to a capture error category.

    Names follow the browser's DOMException names; the recorder below
    translates PortAudio failures into the same vocabulary.
    """
    if not secure_context:
        return CaptureErrorKind.INSECURE_CONTEXT
    if error_name in PERMISSION_ERROR_NAMES:
        return CaptureErrorKind.PERMISSION_DENIED
    if error_name in NO_DEVICE_ERROR_NAMES:
        return CaptureErrorKind.NO_DEVICE
    return CaptureErrorKind.GENERIC


def choose_container(is_supported: Callable[[str], bool]) -> Optional[str]:
    """Return the first supported container, or None for the platform default."""
    for mime_type in CONTAINER_PREFERENCES:
        if is_supported(mime_type):
            return mime_type
    return None


def soundfile_supports(mime_type: str) -> bool:
    """Whether the installed libsndfile can write this container."""
    if mime_type not in SOUNDFILE_FORMATS:
        return False
    file_format, subtype = SOUNDFILE_FORMATS[mime_type]
    return sf.check_format(file_format, subtype)


@dataclass
class AudioBlob:
    """A finished recording."""

    data: bytes
    mime_type: str

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def filename(self) -> str:
        base_type = self.mime_type.split(";", 1)[0].strip()
        return f"audio.{FILE_EXTENSIONS.get(base_type, 'webm')}"


def assemble_blob(chunks: Iterable[bytes], mime_type: str) -> AudioBlob:
    """Concatenate recorded chunks into one blob."""
    return AudioBlob(data=b"".join(chunk for chunk in chunks if chunk), mime_type=mime_type)


def has_speech(blob: AudioBlob) -> bool:
    return blob.size >= MIN_AUDIO_BYTES


@dataclass
class InputDevice:
    """A microphone the user can pick."""

    index: int
    name: str
    channels: int
    is_default: bool = False


def list_input_devices() -> List[InputDevice]:
    """List devices with at least one input channel, none without PortAudio."""
    try:
        import sounddevice as sd
    except OSError as e:
        logger.warning(f"Audio input unavailable: {e}")
        return []

    try:
        default_input = sd.default.device[0]
    except (TypeError, IndexError):
        default_input = None

    devices = []
    for idx, device in enumerate(sd.query_devices()):
        channels = int(device.get("max_input_channels", 0))
        if channels > 0:
            devices.append(
                InputDevice(
                    index=idx,
                    name=device.get("name", f"Device {idx}"),
                    channels=channels,
                    is_default=idx == default_input,
                )
            )
    return devices


def _portaudio_error_name(error: Exception) -> str:
    """Translate a PortAudio failure into a browser-style error name."""
    text = str(error).lower()
    if isinstance(error, ValueError) or "invalid device" in text or "no default input" in text:
        return "NotFoundError"
    if "permission" in text or "access denied" in text or "not authorized" in text:
        return "NotAllowedError"
    if "invalid number of channels" in text or "invalid sample rate" in text:
        return "OverconstrainedError"
    return type(error).__name__


class MicrophoneRecorder:
    """
    Records one take from a microphone.

    Frames arrive on the PortAudio callback thread and are collected
    under a lock until stop() encodes them into a single blob.
    """

    def __init__(
        self,
        device: Optional[Union[int, str]] = None,
        sample_rate: int = 16000,
        channels: int = 1,
    ):
        self.device = device
        self.sample_rate = sample_rate
        self.channels = channels
        self.mime_type = choose_container(soundfile_supports) or PLATFORM_DEFAULT_CONTAINER
        self._frames: List[np.ndarray] = []
        self._lock = threading.Lock()
        self._stream = None

    @property
    def is_recording(self) -> bool:
        return self._stream is not None

    def _callback(self, indata, frames, time_info, status):
        if status:
            logger.debug(f"Input stream status: {status}")
        with self._lock:
            self._frames.append(indata.copy())

    def start(self) -> None:
        """Open the input stream. Raises CaptureError on failure."""
        if self._stream is not None:
            return

        try:
            import sounddevice as sd
        except OSError as e:
            # PortAudio itself is missing
            raise CaptureError(CaptureErrorKind.NO_DEVICE, detail=str(e)) from e

        with self._lock:
            self._frames = []

        try:
            stream = sd.InputStream(
                samplerate=self.sample_rate,
                channels=self.channels,
                dtype="float32",
                device=self.device,
                callback=self._callback,
            )
            stream.start()
        except (sd.PortAudioError, ValueError) as e:
            kind = classify_capture_error(_portaudio_error_name(e))
            logger.error(f"Could not open microphone {self.device!r}: {e}")
            raise CaptureError(kind, detail=str(e)) from e

        self._stream = stream
        logger.debug(f"Recording started ({self.mime_type}, {self.sample_rate} Hz)")

    def stop(self) -> AudioBlob:
        """Close the stream and encode everything recorded so far."""
        if self._stream is not None:
            try:
                self._stream.stop()
                self._stream.close()
            finally:
                self._stream = None

        with self._lock:
            frames = self._frames
            self._frames = []

        if not frames:
            return AudioBlob(data=b"", mime_type=self.mime_type)

        return self.encode(np.concatenate(frames, axis=0))

    def encode(self, samples: np.ndarray) -> AudioBlob:
        """Encode float32 samples into the chosen container."""
        file_format, subtype = SOUNDFILE_FORMATS[self.mime_type]
        buffer = io.BytesIO()
        sf.write(buffer, samples, self.sample_rate, format=file_format, subtype=subtype)
        return AudioBlob(data=buffer.getvalue(), mime_type=self.mime_type)


def load_audio_file(path: str) -> AudioBlob:
    """Read an existing recording from disk as a blob."""
    with open(path, "rb") as f:
        data = f.read()
    extension = path.rsplit(".", 1)[-1].lower() if "." in path else ""
    mime_type = next(
        (mime for mime, ext in FILE_EXTENSIONS.items() if ext == extension),
        "audio/webm",
    )
    return AudioBlob(data=data, mime_type=mime_type)
