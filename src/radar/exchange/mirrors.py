"""Ordered pool of equivalent REST endpoints with a rotation cursor."""

from radar.logging import get_logger

logger = get_logger(__name__)


class MirrorPool:
    """Round-robin pool of base URLs serving the same API.

    The cursor only ever increases; the active mirror is
    ``mirrors[cursor % len(mirrors)]``. It is the only mutable state shared
    between concurrent fetches, and advancing it is a single synchronous step.

    Args:
        mirrors: Base URLs without trailing slash, in preference order.
    """

    def __init__(self, mirrors: list[str]) -> None:
        if not mirrors:
            raise ValueError("MirrorPool requires at least one mirror")
        self._mirrors = tuple(m.rstrip("/") for m in mirrors)
        self._cursor = 0

    def __len__(self) -> int:
        return len(self._mirrors)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def current(self) -> str:
        return self._mirrors[self._cursor % len(self._mirrors)]

    def advance(self) -> str:
        """Move to the next mirror and return it."""
        previous = self.current
        self._cursor += 1
        if len(self._mirrors) > 1:
            logger.warning("mirror_rotated", previous=previous, current=self.current)
        return self.current
