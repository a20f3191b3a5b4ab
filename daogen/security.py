"""Security checks on clauses that callers may add to a query."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Iterable


class ClauseCheckError(ValueError):
    """A clause is not allowed or not recognised."""


@dataclass(frozen=True)
class Hints:
    """Optimizer hints."""

    hints: tuple[str, ...] = ()


@dataclass(frozen=True)
class IndexHint:
    """An index hint such as USE INDEX."""

    type: str = ""
    keys: tuple[str, ...] = ()


class ResolverOperation(enum.Enum):
    """Read/write database selection."""

    READ = "read"
    WRITE = "write"


@dataclass(frozen=True)
class Expr:
    """A raw SQL expression with bound variables."""

    sql: str = ""
    vars: tuple[Any, ...] = ()


@dataclass(frozen=True)
class Assignment:
    """A column assignment."""

    column: str = ""
    value: Any = None


@dataclass(frozen=True)
class OnConflict:
    """An ON CONFLICT clause."""

    columns: tuple[str, ...] = ()
    do_nothing: bool = False
    do_updates: tuple[Assignment, ...] = ()
    update_all: bool = False


@dataclass(frozen=True)
class Table:
    """A table reference."""

    name: str = ""
    alias: str = ""
    raw: bool = False


@dataclass(frozen=True)
class Locking:
    """A FOR UPDATE / FOR SHARE clause."""

    strength: str = ""
    table: Table = field(default_factory=Table)
    options: str = ""


@dataclass(frozen=True)
class Insert:
    """An INSERT clause with an optional modifier."""

    table: Table = field(default_factory=Table)
    modifier: str = ""


@dataclass(frozen=True)
class NamedClause:
    """Any other clause, known by its name."""

    name: str


BANNED_CLAUSES = frozenset({
    "VALUES", "SELECT", "FROM", "WHERE", "GROUP BY", "ORDER BY",
    "LIMIT", "UPDATE", "SET", "DELETE",
})

_PRIORITIES = ("LOW_PRIORITY", "DELAYED", "HIGH_PRIORITY")


def check_conds(conds: Iterable[Any]) -> None:
    """Check every clause, raising on the first that is not allowed."""
    for cond in conds:
        check_clause(cond)


def check_clause(cond: Any) -> None:
    """Raise ClauseCheckError unless the clause is safe to use."""
    if isinstance(cond, (Hints, IndexHint, ResolverOperation)):
        return
    if isinstance(cond, OnConflict):
        _check_on_conflict(cond)
        return
    if isinstance(cond, Locking):
        _check_locking(cond)
        return
    if isinstance(cond, Insert):
        _check_insert(cond)
        return
    name = getattr(cond, "name", None)
    if isinstance(name, str):
        if name in BANNED_CLAUSES:
            raise ClauseCheckError(f"clause {name} is banned")
        return
    raise ClauseCheckError(f"unknown clause {cond!r}")


def _check_on_conflict(clause: OnConflict) -> None:
    for item in clause.do_updates:
        if isinstance(item.value, Expr):
            raise ClauseCheckError(
                "OnConflict clause assignment with gorm.Expr is banned for security reasons for now"
            )


def _check_locking(clause: Locking) -> None:
    if clause.strength.strip().upper() not in ("UPDATE", "SHARE"):
        raise ClauseCheckError("Locking clause's Strength only allow assignments of UPDATE/SHARE")
    if clause.table.raw:
        raise ClauseCheckError("Locking clause's Table cannot be set Raw==true")
    if clause.options.strip().upper() not in ("", "NOWAIT", "SKIP LOCKED"):
        raise ClauseCheckError(
            "Locking clause's Options only allow assignments of NOWAIT/SKIP LOCKED for now"
        )


def _check_insert(clause: Insert) -> None:
    if clause.table.raw:
        raise ClauseCheckError("Table Raw cannot be true")
    if clause.modifier == "":
        return
    modifiers = clause.modifier.strip().upper().split(" ", 1)
    if len(modifiers) == 2:
        priority, ignore = modifiers[0].strip(), modifiers[1].strip()
    else:
        priority, ignore = "", modifiers[0].strip()
    if priority and priority not in _PRIORITIES:
        raise ClauseCheckError("invalid priority value")
    if ignore and ignore != "IGNORE":
        raise ClauseCheckError("invalid modifiers value, should be IGNORE")