"""
Command handlers for the control protocol.

Each handler is a coroutine taking the connection's CommandContext and
the decoded Command and returning exactly one Response. Handlers that
touch the player do so inside `ctx.player.locked()`; URL validation for
play/enqueue runs before the lock is taken, so a slow reachability probe
never blocks other connections.

Commands:
- play, enqueue, next, list, clear: queue and item playback
- pause, skip, prev, status, search: adapter pass-through
- volume, seek: optional adapter capabilities
- artist_info, artist_discography: adapter lookups returned as `items`
- ping: liveness check, no player access
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Coroutine
from dataclasses import dataclass
from typing import Any

from jukebox.core import AdapterError, ValidationError
from jukebox.player.state import Player
from jukebox.protocol.codec import Command, CommandKind, Response
from jukebox.security.urls import UrlValidator

logger = logging.getLogger(__name__)

MISSING_ARG = Response.failure("missing arg")
UNKNOWN_CMD = Response.failure("unknown cmd")
QUEUE_EMPTY = Response.failure("queue empty")


@dataclass
class CommandContext:
    """
    Dependencies handed to every command handler.

    One context is created per connection; the player and validator are
    shared by all connections.
    """

    player: Player
    """The shared playback session."""

    validator: UrlValidator
    """URL policy applied to play/enqueue items."""

    peer: str = "unknown"
    """Remote description of the connection, for logs."""


CommandHandler = Callable[[CommandContext, Command], Coroutine[Any, Any, Response]]


def _arg(command: Command) -> str | None:
    """Return the stripped argument, or None when missing or blank."""
    if command.arg is None:
        return None
    arg = command.arg.strip()
    return arg or None


def _lines(text: str) -> list[str]:
    return text.splitlines()


async def _validated_item(ctx: CommandContext, command: Command) -> str | Response:
    """Return the item to play/enqueue verbatim, or the failure Response."""
    item = command.arg
    if item is None or not item.strip():
        return MISSING_ARG
    try:
        await ctx.validator.validate(item)
    except ValidationError as e:
        return Response.failure(str(e))
    return item



# -----------------------------------------------------------------------------
# Queue and playback
# -----------------------------------------------------------------------------


async def cmd_play(ctx: CommandContext, command: Command) -> Response:
    """Play an item immediately. The queue is not touched."""
    item = await _validated_item(ctx, command)
    if isinstance(item, Response):
        return item

    async with ctx.player.locked() as player:
        try:
            await player.play_item(item)
        except AdapterError as e:
            return Response.failure(f"play failed: {e}")
    return Response.success("playing")


async def cmd_enqueue(ctx: CommandContext, command: Command) -> Response:
    """Append an item to the tail of the queue."""
    item = await _validated_item(ctx, command)
    if isinstance(item, Response):
        return item

    async with ctx.player.locked() as player:
        player.enqueue(item)
    return Response.success("enqueued")


async def cmd_next(ctx: CommandContext, command: Command) -> Response:
    """
    Play the head of the queue.

    The head is removed only after the adapter accepted it, so a failed
    play leaves the queue exactly as it was.
    """
    async with ctx.player.locked() as player:
        item = player.peek_next()
        if item is None:
            return QUEUE_EMPTY
        try:
            await player.play_item(item)
        except AdapterError as e:
            return Response.failure(f"play failed: {e}")
        player.next_item()
    return Response.success(f"playing {item}")


async def cmd_list(ctx: CommandContext, command: Command) -> Response:
    async with ctx.player.locked() as player:
        items = player.list()
    return Response.success("ok", items)


async def cmd_clear(ctx: CommandContext, command: Command) -> Response:
    async with ctx.player.locked() as player:
        count = player.clear()
    return Response.success(f"cleared {count}")


# -----------------------------------------------------------------------------
# Adapter pass-through
# -----------------------------------------------------------------------------


async def cmd_pause(ctx: CommandContext, command: Command) -> Response:
    async with ctx.player.locked() as player:
        try:
            await player.pause()
        except AdapterError as e:
            return Response.failure(f"pause failed: {e}")
    return Response.success("paused")


async def cmd_skip(ctx: CommandContext, command: Command) -> Response:
    """Ask the adapter to skip to its own next item (the queue is not used)."""
    async with ctx.player.locked() as player:
        try:
            await player.skip()
        except AdapterError as e:
            return Response.failure(f"skip failed: {e}")
    return Response.success("skipped")


async def cmd_prev(ctx: CommandContext, command: Command) -> Response:
    async with ctx.player.locked() as player:
        try:
            await player.previous()
        except AdapterError as e:
            return Response.failure(f"prev failed: {e}")
    return Response.success("previous")


async def cmd_status(ctx: CommandContext, command: Command) -> Response:
    async with ctx.player.locked() as player:
        try:
            text = await player.status()
        except AdapterError as e:
            return Response.failure(f"err: {e}")
    return Response.success(text)


async def cmd_search(ctx: CommandContext, command: Command) -> Response:
    query = _arg(command)
    if query is None:
        return MISSING_ARG
    async with ctx.player.locked() as player:
        try:
            text = await player.search(query)
        except AdapterError as e:
            return Response.failure(f"search failed: {e}")
    return Response.success("ok", _lines(text))


async def cmd_artist_info(ctx: CommandContext, command: Command) -> Response:
    """Return the adapter's artist info text, one line per item."""
    artist_id = _arg(command)
    if artist_id is None:
        return MISSING_ARG
    async with ctx.player.locked() as player:
        try:
            text = await player.artist_info(artist_id)
        except AdapterError as e:
            return Response.failure(f"artist info failed: {e}")
    return Response.success("artist info", _lines(text))


async def cmd_artist_discography(ctx: CommandContext, command: Command) -> Response:
    """Return one item per album; an empty discography yields `[]`."""
    artist_id = _arg(command)
    if artist_id is None:
        return MISSING_ARG
    async with ctx.player.locked() as player:
        try:
            text = await player.artist_discography(artist_id)
        except AdapterError as e:
            return Response.failure(f"discography failed: {e}")
    return Response.success("discography", _lines(text))


# -----------------------------------------------------------------------------
# Optional capabilities
# -----------------------------------------------------------------------------


async def cmd_volume(ctx: CommandContext, command: Command) -> Response:
    """
    Query or change the volume.

    arg: none (query), "up", "down", "mute", "unmute", or a level 0-100.
    """
    arg = _arg(command)
    action = arg.lower() if arg else None

    level: int | None = None
    if action is not None and action not in ("up", "down", "mute", "unmute"):
        try:
            level = int(action)
        except ValueError:
            return Response.failure(f"invalid volume: {arg}")
        if not 0 <= level <= 100:
            return Response.failure(f"invalid volume: {arg}")

    async with ctx.player.locked() as player:
        try:
            if action is None:
                current = await player.get_volume()
            elif action == "up":
                current = await player.volume_up()
            elif action == "down":
                current = await player.volume_down()
            elif action == "mute":
                await player.mute()
                return Response.success("muted")
            elif action == "unmute":
                await player.unmute()
                return Response.success("unmuted")
            else:
                current = await player.set_volume(level)
        except AdapterError as e:
            return Response.failure(str(e))
    return Response.success(f"volume {current}")


def _parse_seek(arg: str) -> tuple[str, float] | None:
    """Parse "+N", "-N" (relative seconds) or "N" (absolute seconds)."""
    try:
        value = float(arg)
    except ValueError:
        return None
    if arg.startswith("+"):
        return "forward", value
    if arg.startswith("-"):
        return "backward", -value
    return "to", value


async def cmd_seek(ctx: CommandContext, command: Command) -> Response:
    """
    Query or change the playback position.

    arg: none (query), "+N"/"-N" relative seconds, or "N" absolute seconds.
    """
    arg = _arg(command)
    parsed = _parse_seek(arg) if arg is not None else None
    if arg is not None and parsed is None:
        return Response.failure(f"invalid position: {arg}")

    async with ctx.player.locked() as player:
        try:
            if parsed is None:
                position = await player.get_position()
                duration = await player.get_duration()
                return Response.success(f"position {position:.1f}/{duration:.1f}")

            direction, seconds = parsed
            if direction == "forward":
                await player.seek_forward(seconds)
            elif direction == "backward":
                await player.seek_backward(seconds)
            else:
                await player.seek_to(seconds)
        except AdapterError as e:
            return Response.failure(str(e))
    return Response.success(f"seeked {arg}")


async def cmd_ping(ctx: CommandContext, command: Command) -> Response:
    return Response.success("pong")


# Command dispatch table
COMMAND_HANDLERS: dict[CommandKind, CommandHandler] = {
    CommandKind.PLAY: cmd_play,
    CommandKind.PAUSE: cmd_pause,
    CommandKind.ENQUEUE: cmd_enqueue,
    CommandKind.NEXT: cmd_next,
    CommandKind.STATUS: cmd_status,
    CommandKind.LIST: cmd_list,
    CommandKind.ARTIST_INFO: cmd_artist_info,
    CommandKind.ARTIST_DISCOGRAPHY: cmd_artist_discography,
    CommandKind.PREV: cmd_prev,
    CommandKind.SKIP: cmd_skip,
    CommandKind.SEARCH: cmd_search,
    CommandKind.VOLUME: cmd_volume,
    CommandKind.SEEK: cmd_seek,
    CommandKind.CLEAR: cmd_clear,
    CommandKind.PING: cmd_ping,
}

_missing = set(CommandKind) - set(COMMAND_HANDLERS)
if _missing:
    raise RuntimeError(f"no handler for command kinds: {sorted(k.value for k in _missing)}")
del _missing


async def dispatch(ctx: CommandContext, command: Command) -> Response:
    """Route an authenticated command to its handler."""
    kind = command.kind
    if kind is None:
        logger.debug("Unknown command %r from %s", command.cmd, ctx.peer)
        return UNKNOWN_CMD

    logger.debug("Dispatching %s from %s", kind.value, ctx.peer)
    return await COMMAND_HANDLERS[kind](ctx, command)
