"""
Variable registry for formula trees.

A VariableMap assigns every variable and constant a unique name and a
unique positive index. Literals and terms refer to their variable by
index, so the index space is kept dense: new entries take the smallest
free index, and normalize() removes the gaps left by deletions.
"""

from __future__ import annotations

import heapq
import threading
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar, Union

from clausal.errors import (
    DuplicateIndexError,
    DuplicateNameError,
    TypeMismatchError,
    UnknownVariableError,
)
from clausal.structure.nodes import Constant, Variable, VariableLiteral

SUPPORTED_TYPES = (bool, int, float)

Key = Union[int, str]


@dataclass(frozen=True)
class VariableSignature:
    """
    A registered variable.

    Attributes:
        name: Unique variable name.
        index: Unique positive index.
        type: Declared value type (bool, int or float).
    """

    name: str
    index: int
    type: type

    def __str__(self) -> str:
        return f"{self.index}: {self.name} ({self.type.__name__})"


@dataclass(frozen=True)
class ConstantSignature:
    """
    A registered constant.

    Attributes:
        name: Unique constant name.
        index: Unique positive index.
        type: Declared value type.
        value: The fixed value of the constant.
    """

    name: str
    index: int
    type: type
    value: Any

    def __str__(self) -> str:
        return f"{self.index}: {self.name} ({self.value})"


S = TypeVar("S", VariableSignature, ConstantSignature)


class _IndexTable(Generic[S]):
    """Bidirectional name/index table backing one index space."""

    __slots__ = ("_by_index", "_by_name", "_free", "_max_index")

    def __init__(self) -> None:
        self._by_index: Dict[int, S] = {}
        self._by_name: Dict[str, S] = {}
        # Min-heap of indices below _max_index that may be free.
        # Entries are discarded lazily once found occupied.
        self._free: List[int] = []
        self._max_index: int = 0

    def copy(self) -> _IndexTable[S]:
        table: _IndexTable[S] = _IndexTable()
        table._by_index = dict(self._by_index)
        table._by_name = dict(self._by_name)
        table._free = list(self._free)
        table._max_index = self._max_index
        return table

    @property
    def max_index(self) -> int:
        return self._max_index

    def __len__(self) -> int:
        return len(self._by_index)

    def get(self, key: Key) -> Optional[S]:
        if isinstance(key, str):
            return self._by_name.get(key)
        return self._by_index.get(key)

    def entries(self) -> List[S]:
        return [self._by_index[i] for i in sorted(self._by_index)]

    def next_index(self) -> int:
        while self._free:
            candidate = self._free[0]
            if candidate not in self._by_index and candidate <= self._max_index:
                return candidate
            heapq.heappop(self._free)
        return self._max_index + 1

    def add(
        self,
        name: Optional[str],
        index: Optional[int],
        build: Callable[[str, int], S],
    ) -> S:
        if index is None:
            index = self.next_index()
        elif index <= 0:
            raise ValueError(f"Index must be a positive integer, got {index}")
        elif index in self._by_index:
            raise DuplicateIndexError(
                f"Index {index} is already taken by '{self._by_index[index].name}'"
            )

        if name is None:
            name = str(index)
        if name in self._by_name:
            raise DuplicateNameError(f"Name '{name}' is already registered")

        signature = build(name, index)
        for gap in range(self._max_index + 1, index):
            heapq.heappush(self._free, gap)
        self._max_index = max(self._max_index, index)
        self._by_index[index] = signature
        self._by_name[name] = signature
        return signature

    def remove(self, key: Key) -> bool:
        signature = self.get(key)
        if signature is None:
            return False
        del self._by_index[signature.index]
        del self._by_name[signature.name]
        if signature.index == self._max_index:
            self._max_index = max(self._by_index, default=0)
        else:
            heapq.heappush(self._free, signature.index)
        return True

    def rename(self, key: Key, new_name: str) -> S:
        signature = self.get(key)
        if signature is None:
            raise UnknownVariableError(f"No entry named or indexed {key!r}")
        if new_name == signature.name:
            return signature
        if new_name in self._by_name:
            raise DuplicateNameError(f"Name '{new_name}' is already registered")
        renamed = replace(signature, name=new_name)
        del self._by_name[signature.name]
        self._by_name[new_name] = renamed
        self._by_index[renamed.index] = renamed
        return renamed

    def normalize(self) -> Dict[int, int]:
        mapping: Dict[int, int] = {}
        by_index: Dict[int, S] = {}
        for new_index, old_index in enumerate(sorted(self._by_index), start=1):
            mapping[old_index] = new_index
            by_index[new_index] = replace(self._by_index[old_index], index=new_index)
        self._by_index = by_index
        self._by_name = {s.name: s for s in by_index.values()}
        self._free = []
        self._max_index = len(by_index)
        return mapping


class VariableMap:
    """
    Registry of the variables and constants of a formula context.

    Variables and constants live in two independent index spaces. Index 0
    is never assigned. Reads are plain dictionary lookups; every mutation
    holds an internal lock so index allocation stays consistent when the
    map is shared between threads.

    Attributes:
        variable_count: Highest variable index in use (the width of
            clause arrays built against this map).
    """

    def __init__(self, names: Optional[List[str]] = None) -> None:
        """
        Initialize a map, optionally with boolean variables.

        Args:
            names: Names of boolean variables to register, in index order.
        """
        self._variables: _IndexTable[VariableSignature] = _IndexTable()
        self._constants: _IndexTable[ConstantSignature] = _IndexTable()
        self._lock = threading.RLock()
        for name in names or ():
            self.add_variable(name)

    @classmethod
    def of_size(cls, count: int) -> VariableMap:
        """Create a map with boolean variables named "1" to str(count)."""
        vm = cls()
        for i in range(1, count + 1):
            vm.add_variable(str(i), i)
        return vm

    def copy(self) -> VariableMap:
        """Return an independent copy of this map."""
        vm = VariableMap()
        with self._lock:
            vm._variables = self._variables.copy()
            vm._constants = self._constants.copy()
        return vm

    # ------------------------------------------------------------------ #
    # Variables
    # ------------------------------------------------------------------ #

    def add_variable(
        self,
        name: Optional[str] = None,
        index: Optional[int] = None,
        type: type = bool,
    ) -> int:
        """
        Register a variable.

        Args:
            name: Unique name. Defaults to the string form of the index.
            index: Explicit index. Defaults to the smallest free index.
            type: Value type, one of bool, int, float.

        Returns:
            The index of the new variable.

        Raises:
            DuplicateIndexError: If *index* is already taken.
            DuplicateNameError: If *name* is already taken.
            TypeMismatchError: If *type* is not supported.
        """
        _check_type(type)
        with self._lock:
            signature = self._variables.add(
                name, index, lambda n, i: VariableSignature(n, i, type)
            )
        return signature.index

    def remove(self, key: Key) -> bool:
        """Remove a variable by index or name; return whether it existed."""
        with self._lock:
            return self._variables.remove(key)

    def get(self, key: Key) -> Optional[VariableSignature]:
        """Return the signature of a variable, or None."""
        return self._variables.get(key)

    def require(self, key: Key) -> VariableSignature:
        """
        Return the signature of a variable.

        Raises:
            UnknownVariableError: If no such variable exists.
        """
        signature = self._variables.get(key)
        if signature is None:
            raise UnknownVariableError(f"Unknown variable {key!r}")
        return signature

    def has(self, key: Key) -> bool:
        return self._variables.get(key) is not None

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, (int, str)):
            return False
        return self.has(key)

    def get_index(self, name: str) -> Optional[int]:
        signature = self._variables.get(name)
        return signature.index if signature is not None else None

    def get_name(self, index: int) -> Optional[str]:
        signature = self._variables.get(index)
        return signature.name if signature is not None else None

    def rename(self, key: Key, new_name: str) -> None:
        """
        Rename a variable, keeping its index.

        Raises:
            UnknownVariableError: If the variable does not exist.
            DuplicateNameError: If *new_name* is already taken.
        """
        with self._lock:
            self._variables.rename(key, new_name)

    @property
    def variable_count(self) -> int:
        return self._variables.max_index

    @property
    def names(self) -> List[str]:
        return [s.name for s in self._variables.entries()]

    @property
    def signatures(self) -> List[VariableSignature]:
        return self._variables.entries()

    def __len__(self) -> int:
        return len(self._variables)

    # ------------------------------------------------------------------ #
    # Constants
    # ------------------------------------------------------------------ #

    def add_constant(
        self,
        value: Any,
        name: Optional[str] = None,
        index: Optional[int] = None,
        type: Optional[type] = None,
    ) -> int:
        """
        Register a constant with a fixed value.

        Args:
            value: The constant's value.
            name: Unique name. Defaults to the string form of the index.
            index: Explicit index. Defaults to the smallest free index.
            type: Declared type. Defaults to the type of *value*.

        Returns:
            The index of the new constant.
        """
        declared = builtin_type(value) if type is None else type
        _check_type(declared)
        if builtin_type(value) is not declared:
            raise TypeMismatchError(
                f"Constant value {value!r} is not of type {declared.__name__}"
            )
        with self._lock:
            signature = self._constants.add(
                name, index, lambda n, i: ConstantSignature(n, i, declared, value)
            )
        return signature.index

    def remove_constant(self, key: Key) -> bool:
        with self._lock:
            return self._constants.remove(key)

    def get_constant(self, key: Key) -> Optional[ConstantSignature]:
        return self._constants.get(key)

    def require_constant(self, key: Key) -> ConstantSignature:
        signature = self._constants.get(key)
        if signature is None:
            raise UnknownVariableError(f"Unknown constant {key!r}")
        return signature

    @property
    def constant_count(self) -> int:
        return self._constants.max_index

    @property
    def constants(self) -> List[ConstantSignature]:
        return self._constants.entries()

    # ------------------------------------------------------------------ #
    # Maintenance
    # ------------------------------------------------------------------ #

    def normalize(self) -> Dict[int, int]:
        """
        Compact both index spaces to [1, count], keeping relative order.

        Trees built before the call still hold the old indices and must
        be rebuilt by the caller.

        Returns:
            Mapping from old to new variable index.
        """
        with self._lock:
            self._constants.normalize()
            return self._variables.normalize()

    # ------------------------------------------------------------------ #
    # Node factories
    # ------------------------------------------------------------------ #

    def create_literal(self, key: Key, positive: bool = True) -> VariableLiteral:
        """
        Return a literal for a boolean variable, registering it if needed.

        Raises:
            TypeMismatchError: If the variable exists with a non-boolean type.
        """
        with self._lock:
            signature = self._variables.get(key)
            if signature is None:
                if isinstance(key, str):
                    index = self.add_variable(key)
                else:
                    index = self.add_variable(index=key)
            elif signature.type is not bool:
                raise TypeMismatchError(
                    f"Variable '{signature.name}' has type "
                    f"{signature.type.__name__}, not bool"
                )
            else:
                index = signature.index
        return VariableLiteral(index if positive else -index, self)

    def create_variable(self, key: Key, type: Optional[type] = None) -> Variable:
        """
        Return a variable term, registering the variable if needed.

        Args:
            key: Name or index of the variable.
            type: Required type. A new variable defaults to int.

        Raises:
            TypeMismatchError: If the variable exists with another type.
        """
        with self._lock:
            signature = self._variables.get(key)
            if signature is None:
                declared = int if type is None else type
                if isinstance(key, str):
                    index = self.add_variable(key, type=declared)
                else:
                    index = self.add_variable(index=key, type=declared)
            elif type is not None and signature.type is not type:
                raise TypeMismatchError(
                    f"Variable '{signature.name}' has type "
                    f"{signature.type.__name__}, not {type.__name__}"
                )
            else:
                index = signature.index
        return Variable(index, self)

    def create_constant(self, value: Any, name: Optional[str] = None) -> Constant:
        """Register a constant and return a term referring to it."""
        return Constant(self.add_constant(value, name), self)

    # ------------------------------------------------------------------ #
    # Dunder
    # ------------------------------------------------------------------ #

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VariableMap):
            return NotImplemented
        return (
            self._variables.entries() == other._variables.entries()
            and self._constants.entries() == other._constants.entries()
        )

    def __str__(self) -> str:
        lines = ["VariableMap"]
        lines.extend(f"\t{s}" for s in self._variables.entries())
        lines.extend(f"\t{s}" for s in self._constants.entries())
        return "\n".join(lines)

    def __repr__(self) -> str:
        return f"VariableMap(variables={len(self._variables)}, constants={len(self._constants)})"


builtin_type = type


def _check_type(value_type: type) -> None:
    if value_type not in SUPPORTED_TYPES:
        raise TypeMismatchError(
            f"Unsupported value type {value_type!r}; expected one of bool, int, float"
        )
