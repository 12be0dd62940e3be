"""Persistent slices: in-memory values kept in sync with a backend."""

import json
import threading
from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

import structlog

from mission_control.backend import Backend

logger = structlog.get_logger()

T = TypeVar("T")


@dataclass(frozen=True)
class Codec(Generic[T]):
    """Converts a slice value to and from a JSON-serializable form."""

    encode: Callable[[T], Any]
    decode: Callable[[Any], T]


def scalar_codec(kind: type) -> Codec:
    """Codec for a plain JSON scalar (text or number)."""

    accepted = (float, int) if kind is float else (kind,)

    def decode(data: Any) -> Any:
        if isinstance(data, bool) or not isinstance(data, accepted):
            raise TypeError(f"Expected {kind.__name__}, got {type(data).__name__}")
        return kind(data)

    return Codec(encode=lambda value: value, decode=decode)


def record_codec(cls: type) -> Codec:
    """Codec for a single model record."""

    def decode(data: Any) -> Any:
        if not isinstance(data, dict):
            raise TypeError(f"Expected object for {cls.__name__}, got {type(data).__name__}")
        return cls.from_dict(data)

    return Codec(encode=lambda value: value.to_dict(), decode=decode)


def records_codec(cls: type) -> Codec:
    """Codec for an ordered sequence of model records, held as a tuple."""
    item = record_codec(cls)

    def decode(data: Any) -> tuple:
        if not isinstance(data, list):
            raise TypeError(f"Expected list of {cls.__name__}, got {type(data).__name__}")
        return tuple(item.decode(entry) for entry in data)

    return Codec(encode=lambda values: [item.encode(v) for v in values], decode=decode)


class PersistentSlice(Generic[T]):
    """One named piece of state persisted under a single backend key.

    Until ``hydrate`` runs, ``value`` is exactly the initial value and
    nothing is written. Hydration reads the backend once; a stored value
    that parses replaces the initial value, anything else keeps it. From
    then on every change is written through. Backend and codec failures
    are logged and swallowed; the in-memory value stays authoritative.
    """

    def __init__(self, backend: Backend, key: str, initial: T, codec: Codec[T]) -> None:
        """Initialize a slice.

        Args:
            backend: Durable key-value store
            key: Storage key for this slice
            initial: Value observed before hydration
            codec: Serialization for the value
        """
        self.backend = backend
        self.key = key
        self.initial = initial
        self.codec = codec
        self._value = initial
        self._hydrated = False
        self._lock = threading.RLock()
        self._listeners: list[Callable[[T], None]] = []

    @property
    def value(self) -> T:
        return self._value

    @property
    def hydrated(self) -> bool:
        return self._hydrated

    def hydrate(self) -> bool:
        """Read the stored value once.

        Returns:
            True if a stored value was applied, False otherwise
        """
        with self._lock:
            if self._hydrated:
                return False
            applied = False
            try:
                raw = self.backend.get_item(self.key)
                if raw is not None:
                    self._value = self.codec.decode(json.loads(raw))
                    applied = True
                    logger.debug("Slice hydrated from storage", key=self.key)
                else:
                    logger.debug("No stored value, keeping initial", key=self.key)
            except Exception as e:
                logger.warning("Failed to hydrate slice, keeping initial", key=self.key, error=str(e))
            self._hydrated = True
            self._write()
            value = self._value
        if applied:
            self._notify(value)
        return applied

    def replace(self, value_or_updater: T | Callable[[T], T]) -> T:
        """Replace the value with a new one or with ``updater(previous)``.

        Returning the previous object unchanged is not a change and is not written.
        """
        with self._lock:
            previous = self._value
            if callable(value_or_updater):
                value = value_or_updater(previous)
            else:
                value = value_or_updater
            if value is previous:
                return previous
            self._value = value
            if self._hydrated:
                self._write()
            else:
                logger.debug("Slice changed before hydration, not persisted", key=self.key)
        self._notify(value)
        return value

    def subscribe(self, listener: Callable[[T], None]) -> Callable[[], None]:
        """Register a change listener. Returns a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _write(self) -> None:
        try:
            payload = json.dumps(self.codec.encode(self._value), ensure_ascii=False)
            self.backend.set_item(self.key, payload)
            logger.debug("Slice persisted", key=self.key, size=len(payload))
        except Exception as e:
            logger.warning("Failed to persist slice", key=self.key, error=str(e))

    def _notify(self, value: T) -> None:
        for listener in list(self._listeners):
            try:
                listener(value)
            except Exception as e:
                logger.warning("Slice listener failed", key=self.key, error=str(e))
