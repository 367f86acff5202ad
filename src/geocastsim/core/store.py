"""
MessageStore: per-node record of every distinct message received.

A message is identified by MessageKey(sender, emission). The store keeps a
set for membership and an append-only history for ordering; a key enters
both at most once, no matter how many relay paths deliver it.
"""

from __future__ import annotations

import logging
from typing import Iterable

from geocastsim.core.messages import MessageKey

logger = logging.getLogger(__name__)


class MessageStore:
    """Deduplicated received-message set plus ordered history."""

    def __init__(self, owner_id: int | None = None):
        self.owner_id = owner_id
        self._received: set[MessageKey] = set()
        self._history: list[tuple[MessageKey, str]] = []

    def absorb(
        self, incoming: Iterable[tuple[MessageKey, str, bool]]
    ) -> list[tuple[MessageKey, str]]:
        """
        Accept every valid item whose key has not been seen before.

        An item is skipped when its validity flag is false, its emission is
        not positive (sentinel / placeholder), or the key is already known.
        Duplicates inside `incoming` are accepted once, first occurrence wins.

        Returns:
            Newly accepted (key, content) pairs, in the order they were accepted
        """
        accepted = []
        for key, content, valid in incoming:
            if not valid or not key.is_valid or key in self._received:
                continue
            self._received.add(key)
            self._history.append((key, content))
            accepted.append((key, content))

        if accepted:
            logger.debug(
                "Node %s accepted %d message(s): %s",
                self.owner_id,
                len(accepted),
                ", ".join(f"{k.sender_id}#{k.emission}" for k, _ in accepted),
            )
        return accepted

    @property
    def received(self) -> frozenset[MessageKey]:
        return frozenset(self._received)

    @property
    def history(self) -> tuple[tuple[MessageKey, str], ...]:
        return tuple(self._history)

    def __contains__(self, key: object) -> bool:
        return key in self._received

    def __len__(self) -> int:
        return len(self._received)
