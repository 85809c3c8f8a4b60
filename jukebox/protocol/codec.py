"""
Line-delimited JSON codec for the control protocol.

Protocol Format:
    Each direction carries UTF-8 text, exactly one JSON object per line,
    terminated by a newline.

    Request:  {"cmd": "enqueue", "arg": "https://example.com/a.mp3", "token": "s3cret"}
    Response: {"ok": true, "msg": "enqueued", "items": null}

`arg` and `token` are optional (missing or null). Responses always carry
all three keys. Unknown `cmd` names decode fine; they are rejected later
by the dispatcher, not here.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any

from jukebox.core import ProtocolError


class CommandKind(Enum):
    """Every command name the daemon understands."""

    PLAY = "play"
    PAUSE = "pause"
    ENQUEUE = "enqueue"
    NEXT = "next"
    STATUS = "status"
    LIST = "list"
    ARTIST_INFO = "artist_info"
    ARTIST_DISCOGRAPHY = "artist_discography"
    PREV = "prev"
    SKIP = "skip"
    SEARCH = "search"
    VOLUME = "volume"
    SEEK = "seek"
    CLEAR = "clear"
    PING = "ping"

    @classmethod
    def lookup(cls, name: str) -> CommandKind | None:
        """Return the kind for a wire name, or None if unknown."""
        try:
            return cls(name)
        except ValueError:
            return None


# Commands whose argument is a playable item and goes through URL validation
ITEM_COMMANDS = frozenset({CommandKind.PLAY, CommandKind.ENQUEUE})


@dataclass(frozen=True, slots=True)
class Command:
    """One decoded request line."""

    cmd: str
    arg: str | None = None
    token: str | None = None

    @property
    def kind(self) -> CommandKind | None:
        return CommandKind.lookup(self.cmd)

    def to_dict(self) -> dict[str, Any]:
        return {"cmd": self.cmd, "arg": self.arg, "token": self.token}


@dataclass(frozen=True, slots=True)
class Response:
    """One reply line. `items` is None unless the command returns a list."""

    ok: bool
    msg: str
    items: list[str] | None = None

    @classmethod
    def success(cls, msg: str, items: list[str] | None = None) -> Response:
        return cls(ok=True, msg=msg, items=items)

    @classmethod
    def failure(cls, msg: str) -> Response:
        return cls(ok=False, msg=msg)

    def to_dict(self) -> dict[str, Any]:
        return {"ok": self.ok, "msg": self.msg, "items": self.items}


PARSE_ERROR = Response.failure("parse error")


def _dumps(obj: dict[str, Any]) -> bytes:
    return (json.dumps(obj, separators=(",", ":"), ensure_ascii=False) + "\n").encode("utf-8")


def _loads_object(line: str | bytes) -> dict[str, Any]:
    if isinstance(line, bytes):
        try:
            line = line.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ProtocolError(f"invalid UTF-8: {e}") from e
    try:
        data = json.loads(line)
    except json.JSONDecodeError as e:
        raise ProtocolError(f"invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ProtocolError(f"expected a JSON object, got {type(data).__name__}")
    return data


def _optional_str(data: dict[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise ProtocolError(f"{key!r} must be a string or null")
    return value


def decode_command(line: str | bytes) -> Command:
    """
    Decode one request line into a Command.

    Raises:
        ProtocolError: If the line is not a JSON object with a string `cmd`.
    """
    data = _loads_object(line)
    cmd = data.get("cmd")
    if not isinstance(cmd, str):
        raise ProtocolError("'cmd' must be a string")
    return Command(
        cmd=cmd,
        arg=_optional_str(data, "arg"),
        token=_optional_str(data, "token"),
    )


def encode_command(command: Command) -> bytes:
    """Encode a Command as one newline-terminated JSON line."""
    return _dumps(command.to_dict())


def encode_response(response: Response) -> bytes:
    """Encode a Response as one newline-terminated JSON line."""
    return _dumps(response.to_dict())


def decode_response(line: str | bytes) -> Response:
    """
    Decode one response line (client side).

    Raises:
        ProtocolError: If the line is not a well-formed response object.
    """
    data = _loads_object(line)
    ok = data.get("ok")
    msg = data.get("msg", "")
    items = data.get("items")
    if not isinstance(ok, bool) or not isinstance(msg, str):
        raise ProtocolError("response needs a boolean 'ok' and a string 'msg'")
    if items is not None and (
        not isinstance(items, list) or not all(isinstance(i, str) for i in items)
    ):
        raise ProtocolError("'items' must be a list of strings or null")
    return Response(ok=ok, msg=msg, items=items)
