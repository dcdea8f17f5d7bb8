"""Decode WebSocket text frames into ``IncomingMessage`` records."""

from __future__ import annotations

import json
from typing import Any, Dict, List

from crab_alert.models import Contact, IncomingMessage


class DecodeError(ValueError):
    """Raised when a frame does not match the message schema."""


def _require(data: Dict[str, Any], key: str, kind: type, where: str = "message") -> Any:
    if key not in data:
        raise DecodeError(f"{where}: missing required field {key!r}")
    value = data[key]
    # bool is a subclass of int; keep the two apart in both directions
    if kind is int and isinstance(value, bool):
        raise DecodeError(f"{where}: field {key!r} must be an integer, got bool")
    if not isinstance(value, kind):
        raise DecodeError(
            f"{where}: field {key!r} must be {kind.__name__}, got {type(value).__name__}"
        )
    return value


def _parse_contact(value: Any, where: str) -> Contact:
    if not isinstance(value, dict):
        raise DecodeError(f"{where}: contact must be an object")
    email = _require(value, "email", str, where)
    name = value.get("name")
    if name is not None and not isinstance(name, str):
        raise DecodeError(f"{where}: field 'name' must be str or null")
    return Contact(email=email, name=name)


def _parse_string_list(value: List[Any], key: str) -> List[str]:
    for item in value:
        if not isinstance(item, str):
            raise DecodeError(f"message: every entry of {key!r} must be str")
    return list(value)


def parse_incoming_message(raw: bytes | str) -> IncomingMessage:
    """Parse one text frame.

    Args:
        raw: UTF-8 JSON, as bytes or already decoded text.

    Returns:
        IncomingMessage: The decoded record, ``body`` unset.

    Raises:
        DecodeError: The payload is not UTF-8, not JSON, or any required
            field is missing or mistyped. Extra fields are ignored.
    """
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = bytes(raw).decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecodeError(f"payload is not valid UTF-8: {e}") from e

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise DecodeError(f"payload is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise DecodeError("payload must be a JSON object")

    recipients = _require(data, "to", list)
    attachments = _require(data, "attachments", list)

    return IncomingMessage(
        id=_require(data, "id", str),
        from_=_parse_contact(_require(data, "from", dict), "from"),
        to=[_parse_contact(c, f"to[{i}]") for i, c in enumerate(recipients)],
        subject=_require(data, "subject", str),
        time=_require(data, "time", int),
        date=_require(data, "date", str),
        size=_require(data, "size", str),
        opened=_require(data, "opened", bool),
        has_html=_require(data, "has_html", bool),
        has_plain=_require(data, "has_plain", bool),
        attachments=_parse_string_list(attachments, "attachments"),
    )


__all__ = ["DecodeError", "parse_incoming_message"]
