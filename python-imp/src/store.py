"""Persistent stores mapping IMP identifiers to integers."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping

from imp_lang import ImpError


class UnboundVariable(ImpError, LookupError):
    """An identifier was read before any value was bound to it."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"variable {name} is undefined")


class Store(Mapping):
    """An immutable mapping from identifiers to integers.

    `set` copies the bindings and returns a new store, so a store handed out
    earlier keeps describing the state "before" the update.
    """

    __slots__ = ("_bindings", "_hash")

    def __init__(self, bindings: Mapping[str, int] | Iterable[tuple[str, int]] = ()):
        items = dict(bindings)
        for name, value in items.items():
            if not isinstance(name, str) or not name:
                raise ValueError(f"identifier must be a non-empty string, got {name!r}")
            if not isinstance(value, int) or isinstance(value, bool):
                raise TypeError(f"value of {name} must be an int, got {value!r}")
        self._bindings = items
        self._hash = None

    @staticmethod
    def empty() -> Store:
        return Store()

    def get(self, name: str, *default) -> int:
        """Return the value bound to `name`.

        Raises `UnboundVariable` when `name` has no binding and no default
        was passed.
        """
        try:
            return self._bindings[name]
        except KeyError:
            if default:
                return default[0]
            raise UnboundVariable(name) from None

    def set(self, name: str, value: int) -> Store:
        """Return a copy of this store with `name` bound to `value`."""
        bindings = dict(self._bindings)
        bindings[name] = value
        return Store(bindings)

    def __getitem__(self, name: str) -> int:
        return self.get(name)

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._bindings))

    def __len__(self) -> int:
        return len(self._bindings)

    def __contains__(self, name: object) -> bool:
        return name in self._bindings

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Store):
            return self._bindings == other._bindings
        if isinstance(other, Mapping):
            return self._bindings == dict(other)
        return NotImplemented

    def __hash__(self) -> int:
        if self._hash is None:
            self._hash = hash(frozenset(self._bindings.items()))
        return self._hash

    def __repr__(self) -> str:
        inner = ", ".join(f"{k}: {self._bindings[k]}" for k in self)
        return f"Store({{{inner}}})"
