"""Translation of an entity's current state into a queue message."""

from __future__ import annotations

from typing import Any, ClassVar, Protocol

from spanline.messages.models import Message, MessageKind


class Snapshottable(Protocol):
    """Anything that can describe its full current state as a wire payload."""

    create_kind: ClassVar[MessageKind]
    update_kind: ClassVar[MessageKind]

    def to_payload(self) -> dict[str, Any]: ...


def to_message(entity: Snapshottable, *, created: bool = False) -> Message:
    """Build the message describing ``entity`` as it is right now.

    The payload is a full snapshot, not a diff, so the latest message for
    an entity is always sufficient on its own.

    Parameters:
        entity: The trace or span that was just created or mutated.
        created: ``True`` for the message emitted at construction.

    Returns:
        A new ``Message``; the entity is not referenced by it.
    """
    kind = entity.create_kind if created else entity.update_kind
    return Message(kind=kind, payload=entity.to_payload())
