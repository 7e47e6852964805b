"""Framing service: packs payloads into marker-delimited COBS frames and back."""

import logging
from collections.abc import Iterable

from cobsframe.cobs import CobsDecodeError, stuff, unstuff

logger = logging.getLogger(__name__)


class FrameProcessor:
    """Encodes and decodes complete buffers of back-to-back COBS frames.

    Each call works on a buffer whose full contents are known up front; no
    partial frame is carried over between calls.
    """

    def __init__(self, marker: int = 0x00):
        self.marker = marker

    def encode_frames(self, payloads: Iterable[bytes]) -> bytes:
        """Stuff every payload and concatenate the resulting frames."""
        out = bytearray()
        for payload in payloads:
            out.extend(stuff(payload, self.marker))
        return bytes(out)

    def process_frame(self, raw_frame: bytes) -> bytes | None:
        """Decode a single frame, terminator included.

        Returns the payload or None if the frame is malformed.
        """
        try:
            return unstuff(raw_frame, self.marker)
        except CobsDecodeError as exc:
            logger.warning("Dropping malformed frame (%d bytes): %s", len(raw_frame), exc)
            return None

    def decode_frames(self, buffer: bytes) -> list[bytes]:
        """Split ``buffer`` on the marker and decode each frame in order.

        Malformed frames are dropped. Trailing bytes without a terminator are
        dropped too, since they cannot form a complete frame.
        """
        payloads = []
        start = 0
        marker = bytes([self.marker])

        while start < len(buffer):
            end = buffer.find(marker, start)
            if end < 0:
                logger.warning(
                    "Discarding %d trailing byte(s) with no terminator",
                    len(buffer) - start,
                )
                break

            payload = self.process_frame(buffer[start : end + 1])
            if payload is not None:
                payloads.append(payload)
            start = end + 1

        logger.debug("Decoded %d frame(s) from %d bytes", len(payloads), len(buffer))
        return payloads
