"""Event payloads and the event-name grammar.

    namespace        field ("." key)*
    <ns>:<key>:read  one key was read           ReadEvent
    <ns>:read        any key in <ns> was read   ReadEvent
    <ns>:<key>:change                           ChangeEvent
    <ns>:change      any write in <ns>          ChangeEvent | MutationEvent

Payloads are frozen and built fresh for every emission.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ReadEvent:
    prop: Any
    value: Any
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True)
class ChangeEvent:
    prop: Any
    old_value: Any
    new_value: Any
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True)
class MutationEvent:
    """A list mutator ran. Emitted under <ns>:change only.

    length is the list length after the mutation. kwargs holds keyword
    arguments (sort's key/reverse); it is empty for the other mutators.
    """

    method: str
    args: tuple
    length: int
    timestamp: float = field(default_factory=time.time)
    kwargs: dict = field(default_factory=dict)


def read_event(namespace: str, prop: object = None) -> str:
    """Name of the specific read event, or the generic one if prop is None."""
    if prop is None:
        return f"{namespace}:read"
    return f"{namespace}:{prop}:read"


def change_event(namespace: str, prop: object = None) -> str:
    """Name of the specific change event, or the generic one if prop is None."""
    if prop is None:
        return f"{namespace}:change"
    return f"{namespace}:{prop}:change"
