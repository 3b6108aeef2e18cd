"""Limit values: unlimited vs. a concrete ceiling.

Upstream billing APIs encode "no cap" either as a missing/null max or as the
reserved 32-bit integer ``2147483647``. Internally a limit is one of two
variants, ``Unlimited`` or ``Bounded(n)``; the sentinel integer only appears
at the API boundary and in :meth:`Limit.as_int`, which gives a plain integer
that compares arithmetically against usage.
"""

from dataclasses import dataclass
from typing import Any, Union

UNLIMITED_SENTINEL = 2147483647


@dataclass(frozen=True)
class Unlimited:
    """No ceiling on the feature."""

    def as_int(self) -> int:
        return UNLIMITED_SENTINEL

    def __str__(self) -> str:
        return "unlimited"


@dataclass(frozen=True)
class Bounded:
    """A concrete, non-negative ceiling."""

    value: int

    def __post_init__(self) -> None:
        if not 0 <= self.value < UNLIMITED_SENTINEL:
            raise ValueError(f"Bounded limit out of range: {self.value}")

    def as_int(self) -> int:
        return self.value

    def __str__(self) -> str:
        return str(self.value)


Limit = Union[Unlimited, Bounded]

UNLIMITED = Unlimited()


def parse_limit(raw: Any) -> Limit:
    """Classify a raw upstream limit value.

    ``None`` and the sentinel (as int or numeric string) are unlimited.
    Anything else is parsed as a base-10 integer; a non-numeric string
    raises ``ValueError``. Negative values are clamped to 0.
    """
    if raw is None:
        return UNLIMITED
    if isinstance(raw, bool):
        raise ValueError(f"Not a limit value: {raw!r}")
    if isinstance(raw, str):
        value = int(raw.strip(), 10)
    else:
        value = int(raw)
    if value >= UNLIMITED_SENTINEL:
        return UNLIMITED
    return Bounded(max(0, value))


def normalize(raw: Any) -> int:
    """Return the resolved integer ceiling for a raw limit value."""
    return parse_limit(raw).as_int()
