"""Entry point: python -m cobsframe [stuff|unstuff] [--marker N] [--hex]

Reads all of stdin, writes the transformed bytes to stdout.
"""

import argparse
import sys

import structlog
from pydantic import ValidationError

from cobsframe.cobs import CobsDecodeError, stuff, unstuff_frame
from cobsframe.config import Settings
from cobsframe.logging_config import configure_logging

COMMANDS = ("stuff", "unstuff")


def _byte(text: str) -> int:
    """argparse type for a marker byte, decimal or 0x-prefixed."""
    try:
        return int(text, 0)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a byte value: {text!r}") from None


def _parse_args(argv):
    parser = argparse.ArgumentParser(prog="cobsframe", description=__doc__.splitlines()[0])
    parser.add_argument("command", nargs="?", default="stuff", help="stuff or unstuff")
    parser.add_argument(
        "--marker",
        type=_byte,
        default=None,
        help="marker byte, decimal or 0x-prefixed (default: COBS_MARKER or 0x00)",
    )
    parser.add_argument(
        "--hex",
        action="store_true",
        default=None,
        help="read and write hex text instead of raw bytes",
    )
    return parser.parse_args(argv)


def _read_input(hex_mode: bool) -> bytes:
    if hex_mode:
        return bytes.fromhex(sys.stdin.read())
    return sys.stdin.buffer.read()


def _write_output(data: bytes, hex_mode: bool) -> None:
    if hex_mode:
        print(data.hex(" "))
    else:
        sys.stdout.buffer.write(data)
        sys.stdout.buffer.flush()


def run_stuff(data: bytes, marker: int) -> bytes:
    log = structlog.get_logger()
    frame = stuff(data, marker)
    log.debug("stuffed", input_bytes=len(data), frame_bytes=len(frame), marker=marker)
    return frame


def run_unstuff(data: bytes, marker: int) -> bytes:
    log = structlog.get_logger()
    result = unstuff_frame(data, marker)
    if result.frame_length < len(data):
        log.warning(
            "ignoring bytes after terminator",
            trailing_bytes=len(data) - result.frame_length,
        )
    log.debug("unstuffed", frame_bytes=result.frame_length, payload_bytes=result.length)
    return result.payload


def main(argv=None) -> int:
    args = _parse_args(argv)
    try:
        settings = Settings()
    except ValidationError as exc:
        print(f"Invalid configuration:\n{exc}", file=sys.stderr)
        return 1
    configure_logging("cli", settings.LOG_LEVEL)
    log = structlog.get_logger()

    marker = settings.MARKER if args.marker is None else args.marker
    hex_mode = settings.HEX if args.hex is None else args.hex

    if args.command not in COMMANDS:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        print("Usage: python -m cobsframe [stuff|unstuff] [--marker N] [--hex]", file=sys.stderr)
        return 1

    if not 0 <= marker <= 0xFF:
        print(f"Marker must be a single byte (0-255), got {marker}", file=sys.stderr)
        return 1

    try:
        data = _read_input(hex_mode)
    except ValueError as exc:
        log.error("invalid hex input", error=str(exc))
        return 1

    if args.command == "stuff":
        _write_output(run_stuff(data, marker), hex_mode)
        return 0

    try:
        payload = run_unstuff(data, marker)
    except CobsDecodeError as exc:
        log.error("decode failed", error=str(exc))
        return 1

    _write_output(payload, hex_mode)
    return 0


if __name__ == "__main__":
    sys.exit(main())
