"""Pure helpers that fit attachments and text into host message limits."""

from __future__ import annotations

from typing import Optional, Sequence, TypeVar

from sns_relay.core.errors import MessageTooLongError

T = TypeVar("T")

MAX_ATTACHMENTS_PER_MESSAGE = 10
MAX_MESSAGE_LENGTH = 2000


def chunk_list(items: Sequence[T], size: int) -> list[list[T]]:
    """Split items into consecutive groups of at most ``size``, keeping order."""
    if size < 1:
        raise ValueError(f"chunk size must be positive, got {size}")
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


def join_message_bodies(
    items: Sequence[str],
    header: Optional[str] = None,
    limit: int = MAX_MESSAGE_LENGTH,
) -> list[str]:
    """Pack newline-terminated lines into as few bodies as possible.

    The header, when given, becomes the first line of the first body. Lines
    are never split, so a line longer than ``limit - 1`` characters raises
    :class:`MessageTooLongError`.
    """
    lines = ([header] if header is not None else []) + list(items)

    bodies: list[str] = []
    current = ""
    for line in lines:
        entry = line + "\n"
        if len(entry) > limit:
            raise MessageTooLongError(
                f"line of {len(line)} characters does not fit a {limit} character message"
            )
        if current and len(current) + len(entry) > limit:
            bodies.append(current)
            current = ""
        current += entry

    if current:
        bodies.append(current)

    return bodies
