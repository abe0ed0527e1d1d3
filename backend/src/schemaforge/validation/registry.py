"""Custom validator registry for schemaforge.

Maps a name to a predicate over a field value. Rules of type CUSTOM refer to
predicates by name; the name is resolved when the schema is built, so a
missing registration fails fast instead of on first use.

Registration is expected at application startup. A process-wide default
registry backs the module-level helpers; tests and embedders can construct
isolated registries instead.
"""

import logging
import threading
from collections.abc import Awaitable, Callable
from typing import Any

from schemaforge.validation.types import CustomValidatorNotFoundError

logger = logging.getLogger(__name__)

# Predicate signature: (value) -> bool, or an awaitable bool for I/O-bound checks
CustomPredicate = Callable[[Any], bool | Awaitable[bool]]


class CustomValidatorRegistry:
    """Thread-safe registry of named custom predicates.

    Unlike hook registration, re-registering a name replaces the previous
    predicate (last write wins).

    Example:
        registry = CustomValidatorRegistry()
        registry.register("isEven", lambda v: v % 2 == 0)

        predicate = registry.lookup("isEven")
    """

    def __init__(self) -> None:
        self._predicates: dict[str, CustomPredicate] = {}
        self._lock = threading.RLock()

    def register(self, name: str, predicate: CustomPredicate) -> None:
        """Register a predicate under a name, replacing any existing one.

        Args:
            name: Key referenced by a rule's ``customFunction``
            predicate: Callable returning True when the value is acceptable
        """
        if not callable(predicate):
            raise TypeError(f"Custom validator '{name}' must be callable")
        with self._lock:
            replaced = name in self._predicates
            self._predicates[name] = predicate
        logger.debug(
            "%s custom validator '%s'", "Replaced" if replaced else "Registered", name
        )

    def lookup(self, name: str) -> CustomPredicate:
        """Get a registered predicate by name.

        Raises:
            CustomValidatorNotFoundError: If nothing is registered under ``name``
        """
        with self._lock:
            predicate = self._predicates.get(name)
        if predicate is None:
            raise CustomValidatorNotFoundError(name)
        return predicate

    def unregister(self, name: str) -> bool:
        """Remove a registration. Returns True if one existed."""
        with self._lock:
            return self._predicates.pop(name, None) is not None

    def is_registered(self, name: str) -> bool:
        with self._lock:
            return name in self._predicates

    def list_registered(self) -> list[str]:
        with self._lock:
            return sorted(self._predicates)

    def clear(self) -> None:
        """Clear all registrations. Primarily for testing."""
        with self._lock:
            self._predicates.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._predicates)


# Process-wide registry used when no explicit registry is supplied.
default_registry = CustomValidatorRegistry()


def register_custom_validator(name: str, predicate: CustomPredicate) -> None:
    """Register a predicate on the process-wide registry."""
    default_registry.register(name, predicate)


def custom_validator(
    name: str,
    registry: CustomValidatorRegistry | None = None,
) -> Callable[[CustomPredicate], CustomPredicate]:
    """Decorator to register a custom validator predicate.

    Usage:
        @custom_validator("isEven")
        def is_even(value) -> bool:
            return isinstance(value, int) and value % 2 == 0
    """

    def decorator(fn: CustomPredicate) -> CustomPredicate:
        target = registry if registry is not None else default_registry
        target.register(name, fn)
        return fn

    return decorator
