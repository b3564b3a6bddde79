from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping

from linktips.errors import EventError

# Basic bounds.
MAX_EVENT_NAME_LEN = 64
MAX_KEY_LEN = 64
MAX_STR_LEN = 4096
MAX_BYTES_LEN = 4096
MAX_INT_BITS = 256

# Names and keys are identifier-like: letters/underscore, then letters/digits/underscore.
_IDENT_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

ArgValue = Any  # constrained at runtime


@dataclass
class Event:
    """A structured event emitted by one contract call."""

    name: str
    args: Dict[str, ArgValue]

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        for k, v in self.args.items():
            out[k] = "0x" + v.hex() if isinstance(v, bytes) else v
        return {"name": self.name, "args": out}


class EventLog:
    """Per-call event buffer. The host publishes it only if the call succeeds."""

    def __init__(self) -> None:
        self._events: List[Event] = []

    # --- Validation helpers -------------------------------------------------

    def _check_ident(self, what: str, value: Any, max_len: int) -> str:
        if not isinstance(value, str):
            raise EventError(f"event {what} must be str", details={"where": f"{what}_type"})
        if len(value) == 0:
            raise EventError(f"event {what} must be non-empty", details={"where": f"{what}_empty"})
        if len(value) > max_len:
            raise EventError(f"event {what} too long", details={"where": f"{what}_length", "len": len(value)})
        if not _IDENT_RE.match(value):
            raise EventError(
                f"event {what} has invalid characters",
                details={"where": f"{what}_grammar", what: value},
            )
        return value

    def _check_value(self, value: Any) -> ArgValue:
        if isinstance(value, (bytes, bytearray)):
            b = bytes(value)
            if len(b) > MAX_BYTES_LEN:
                raise EventError("event bytes arg too long", details={"where": "value_bytes_length", "len": len(b)})
            return b

        if isinstance(value, bool):
            # bool is a subclass of int, so check it before int.
            return value

        if isinstance(value, int):
            if value.bit_length() > MAX_INT_BITS:
                raise EventError(
                    "event int arg out of range",
                    details={"where": "value_int_bits", "bits": value.bit_length()},
                )
            return int(value)

        if isinstance(value, str):
            if len(value) > MAX_STR_LEN:
                raise EventError("event str arg too long", details={"where": "value_str_length", "len": len(value)})
            return value

        raise EventError(
            "unsupported event arg type",
            details={"where": "value_type", "py_type": type(value).__name__},
        )

    # --- Core operations ----------------------------------------------------

    def emit(self, name: str, args: Mapping[Any, Any]) -> None:
        ename = self._check_ident("name", name, MAX_EVENT_NAME_LEN)

        if not isinstance(args, Mapping):
            raise EventError("event args must be a mapping", details={"where": "args_type"})

        checked: Dict[str, ArgValue] = {}
        for raw_k, raw_v in args.items():
            checked[self._check_ident("key", raw_k, MAX_KEY_LEN)] = self._check_value(raw_v)

        self._events.append(Event(ename, checked))

    def clear(self) -> None:
        self._events.clear()

    def iter_events(self) -> Iterable[Event]:
        return tuple(self._events)

    def drain(self) -> List[Event]:
        """Return all buffered events and empty the log."""
        out = list(self._events)
        self._events.clear()
        return out

    def __len__(self) -> int:
        return len(self._events)


__all__ = ["Event", "EventLog", "MAX_INT_BITS"]
