"""COBS (Consistent Overhead Byte Stuffing) with a configurable marker byte.

A stuffed frame looks like::

    [distance][payload bytes...][distance][payload bytes...]...[marker]

Every marker byte in the payload is removed and replaced by bookkeeping: each
distance byte holds the number of bytes until the next distance byte or the
terminator. A run of 254 marker-free bytes forces an extra distance byte with
value 0xFF, which the decoder drops instead of turning it back into a marker.
The marker appears exactly once in the frame, as the final byte.

With the conventional 0x00 marker the output is classic COBS. For any other
marker, a distance ``d`` is written as ``d - 1`` when ``d <= marker`` so that
no distance byte can be mistaken for the terminator. Such frames are not
wire-compatible with decoders that write distances unchanged: marker 0x0A and
payload ``b"\x11"`` give ``01 11 0A`` here, ``02 11 0A`` there.
"""

from typing import NamedTuple

_MAX_DISTANCE = 0xFF
_MAX_RUN = 254


class CobsDecodeError(Exception):
    pass


class MissingTerminatorError(CobsDecodeError):
    """The buffer ended without ever reaching the marker byte."""


class BufferSizeError(ValueError):
    """A caller-supplied size or byte argument violates the codec's contract."""


class Unstuffed(NamedTuple):
    """Result of :func:`unstuff_frame`.

    ``buffer`` is the whole output buffer (trailing bytes hold the fill value),
    ``length`` is the decoded payload length and ``frame_length`` is the number
    of input bytes consumed, terminator included.
    """

    buffer: bytes
    length: int
    frame_length: int

    @property
    def payload(self) -> bytes:
        return self.buffer[: self.length]


def max_stuffed_size(length: int) -> int:
    """Capacity needed to stuff ``length`` payload bytes.

    Two bytes for the leading distance byte and the terminator, plus one
    forced distance byte for every 254 bytes of payload.
    """
    return length + 2 + length // _MAX_RUN


def _check_byte(value: int, name: str) -> None:
    if not 0 <= value <= 0xFF:
        raise BufferSizeError(f"{name} must be a single byte (0-255), got {value!r}")


def _encode_distance(distance: int, marker: int) -> int:
    return distance - 1 if distance <= marker else distance


def _decode_distance(value: int, marker: int) -> int:
    return value + 1 if value < marker else value


class MarkerInfo:
    """Tracks the most recently placed distance byte while stuffing.

    ``index`` is where that distance byte lives in the output buffer and
    ``points_to`` is the output position at which a forced distance byte must
    be inserted if no marker shows up before then.
    """

    __slots__ = ("index", "points_to")

    def __init__(self, index: int, points_to: int):
        self.index = index
        self.points_to = points_to

    def points_at(self, out_index: int) -> bool:
        return self.points_to == out_index

    def adjust(self, out_buffer: bytearray, new_index: int, marker: int = 0x00) -> None:
        """Close the distance to ``new_index`` and start tracking from there."""
        distance = new_index - self.index
        assert 0 < distance <= _MAX_DISTANCE, (
            f"distance {distance} between index {self.index} and {new_index} "
            f"does not fit in a distance byte"
        )
        out_buffer[self.index] = _encode_distance(distance, marker)

        self.index = new_index
        self.points_to = new_index + _MAX_DISTANCE

    def __repr__(self) -> str:
        return f"MarkerInfo(index={self.index}, points_to={self.points_to})"


def stuff(data: bytes, marker: int = 0x00, size: int | None = None) -> bytes:
    """Stuff ``data`` into a COBS frame terminated by ``marker``.

    Returns exactly the frame when ``size`` is None. With a ``size`` the result
    is ``size`` bytes long and any room after the terminator holds the marker.
    Raises BufferSizeError when ``size`` cannot hold the frame.
    """
    _check_byte(marker, "marker")
    length = len(data)
    if size is not None and size < length + 2:
        raise BufferSizeError(
            f"Output size {size} too small for {length}-byte input "
            f"(need at least {length + 2}, at most {max_stuffed_size(length)})"
        )

    # Unused capacity is already marker-valued, so the terminator is implicit.
    output = bytearray([marker]) * max_stuffed_size(length)

    # The leading distance byte is always present.
    last_marker = MarkerInfo(0, _MAX_DISTANCE)
    # output index = input index + overhead_bytes
    overhead_bytes = 1

    for i, value in enumerate(data):
        if last_marker.points_at(overhead_bytes + i):
            # 254 marker-free bytes since the last distance byte: forced break.
            last_marker.adjust(output, overhead_bytes + i, marker)
            overhead_bytes += 1

        if value == marker:
            last_marker.adjust(output, overhead_bytes + i, marker)
            continue

        output[overhead_bytes + i] = value

    end = length + overhead_bytes
    last_marker.adjust(output, end, marker)
    output[end] = marker

    frame_length = end + 1
    if size is None:
        return bytes(output[:frame_length])
    if size < frame_length:
        raise BufferSizeError(
            f"Output size {size} too small for {frame_length}-byte COBS frame"
        )
    return bytes(output[:frame_length]) + bytes([marker]) * (size - frame_length)


def unstuff_frame(
    data: bytes,
    marker: int = 0x00,
    size: int | None = None,
    fill: int = 0x00,
) -> Unstuffed:
    """Decode the first COBS frame in ``data``.

    Decoding stops at the first marker byte; anything after it is ignored.
    A marker that arrives before the current run is complete is rejected as
    truncated, where a lenient decoder would return the partial payload.
    When ``size`` is None the returned buffer is exactly the payload, otherwise
    it is ``size`` bytes with ``fill`` after the payload.

    Raises CobsDecodeError on malformed input (MissingTerminatorError when no
    marker is found) and BufferSizeError when ``size`` is too small.
    """
    _check_byte(marker, "marker")
    _check_byte(fill, "fill")
    if not data:
        raise MissingTerminatorError("Missing terminator: empty COBS frame")
    if data[0] == marker:
        raise CobsDecodeError("COBS frame starts with the marker byte")

    capacity = len(data) if size is None else size
    output = bytearray([fill]) * capacity

    # Minus one because the loop starts after the first distance byte.
    first_distance = _decode_distance(data[0], marker)
    until_next_marker = first_distance - 1
    next_is_overhead_byte = first_distance == _MAX_DISTANCE
    overhead_bytes = 1

    for i in range(1, len(data)):
        value = data[i]

        if value == marker:
            if until_next_marker:
                raise CobsDecodeError(
                    f"COBS frame truncated: {until_next_marker} byte(s) missing "
                    f"before terminator at offset {i}"
                )
            length = i - overhead_bytes
            buffer = bytes(output[:length]) if size is None else bytes(output)
            return Unstuffed(buffer, length, i + 1)

        out_index = i - overhead_bytes
        if until_next_marker == 0:
            distance = _decode_distance(value, marker)
            if next_is_overhead_byte:
                # Forced break, no marker was removed here.
                overhead_bytes += 1
            else:
                _put(output, out_index, marker)
            next_is_overhead_byte = distance == _MAX_DISTANCE
            until_next_marker = distance - 1
        else:
            _put(output, out_index, value)
            until_next_marker -= 1

    raise MissingTerminatorError(
        f"Missing terminator: no 0x{marker:02X} marker byte in "
        f"{len(data)}-byte COBS frame"
    )


def unstuff(data: bytes, marker: int = 0x00) -> bytes:
    """Decode a COBS frame and return exactly the original payload."""
    return unstuff_frame(data, marker).payload


def _put(output: bytearray, index: int, value: int) -> None:
    if index >= len(output):
        raise BufferSizeError(
            f"Output size {len(output)} too small for decoded COBS payload"
        )
    output[index] = value
