"""Adapters between WebSocket text messages and stomp.py frames.

stomp.py's codec reads frames off a byte stream and leaves header escaping to
its protocol layer. Over WebSocket each text message carries exactly one
frame, so these helpers strip the trailing NULL before decoding, check the
command, and escape header values on the way out (CONNECT and CONNECTED frames
are sent unescaped, as STOMP 1.2 requires).
"""

from __future__ import annotations

from stomp.utils import Frame, convert_frame
from stomp.utils import parse_frame as _parse_bytes

NULL = "\x00"

_ESCAPES = {"\\": "\\\\", ":": "\\c", "\n": "\\n", "\r": "\\r"}
_UNESCAPED_COMMANDS = {"CONNECT", "CONNECTED"}


class FrameError(ValueError):
    """Text that cannot be decoded as a STOMP frame."""


def _escape(value: str) -> str:
    return "".join(_ESCAPES.get(ch, ch) for ch in value)


def parse_frame(text: str) -> Frame | None:
    """Decode one frame. Returns None for a heart-beat."""
    text = text.lstrip("\r\n")
    if NULL in text:
        text = text[: text.index(NULL)]
    if not text:
        return None

    frame = _parse_bytes(text.encode("utf-8"))
    if frame is None or frame.cmd == "heartbeat":
        return None
    command = frame.cmd.strip()
    if not command.isalpha() or not command.isupper():
        raise FrameError(f"Invalid command: {command!r}")
    body = frame.body or b""
    return Frame(command, dict(frame.headers), body.decode("utf-8"))


def render_frame(frame: Frame) -> str:
    headers = {name: str(value) for name, value in frame.headers.items()}
    if frame.cmd not in _UNESCAPED_COMMANDS:
        headers = {_escape(name): _escape(value) for name, value in headers.items()}
    return b"".join(convert_frame(Frame(frame.cmd, headers, frame.body))).decode("utf-8")


def error_frame(message: str, detail: str = "", receipt_id: str | None = None) -> Frame:
    headers = {"message": message, "content-type": "text/plain"}
    if receipt_id:
        headers["receipt-id"] = receipt_id
    return Frame("ERROR", headers, detail)
