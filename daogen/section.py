"""Split SQL templates into sections and turn them into generator statements."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Optional

from .model import GEN_KEYWORDS, Status

_GO_ESCAPES = {
    "\a": "\\a",
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\v": "\\v",
}

_TEMPLATE_SEPARATORS = re.compile(r"[: =,]+")

_SECTION_TYPES = {
    "if": Status.IF,
    "else": Status.ELSE,
    "for": Status.FOR,
    "where": Status.WHERE,
    "set": Status.SET,
    "end": Status.END,
    "trim": Status.TRIM,
}

_SQL_LIKE = (Status.SQL, Status.DATA, Status.VARIABLE)


def _quote(text: str) -> str:
    """Quote a string as a double-quoted literal of the generated code."""
    out = ['"']
    for ch in text:
        code = ord(ch)
        if ch in ('"', "\\"):
            out.append("\\" + ch)
        elif ch in _GO_ESCAPES:
            out.append(_GO_ESCAPES[ch])
        elif code < 0x20 or code == 0x7F:
            out.append(f"\\x{code:02x}")
        elif not ch.isprintable():
            out.append(f"\\u{code:04x}" if code < 0x10000 else f"\\U{code:08x}")
        else:
            out.append(ch)
    out.append('"')
    return "".join(out)


@dataclass
class ForRange:
    """The loop variables and the ranged expression of a for template."""

    index: str = ""
    value: str = ""
    suffix: str = ""
    range_list: str = ""

    def __str__(self) -> str:
        return f"for {self.index}, {self.value} := range {self.range_list}"


@dataclass(eq=False)
class Part:
    """One piece of a split SQL template."""

    type: Status = Status.UNKNOWN
    value: str = ""
    for_range: ForRange = field(default_factory=ForRange)
    sql_slice: Optional["Section"] = field(default=None, repr=False)
    split_list: list[str] = field(default_factory=list)

    def __str__(self) -> str:
        if self.type == Status.FOR:
            return str(self.for_range)
        return self.value

    def is_end(self) -> bool:
        return self.type == Status.END

    def sql_param_name(self) -> str:
        return self.value.replace(".", "")

    def split_template(self) -> None:
        self.split_list = [p for p in _TEMPLATE_SEPARATORS.split(self.value.strip()) if p]

    def check_template(self) -> None:
        """Work out the template's kind, raising ValueError on bad syntax."""
        if not self.split_list:
            raise ValueError("template is null")
        if GEN_KEYWORDS.contain(self.value):
            raise ValueError("template can not use gen keywords")
        keyword = self.split_list[0]
        if keyword not in _SECTION_TYPES:
            raise ValueError(f"unknown syntax: {keyword}")
        self.type = _SECTION_TYPES[keyword]

        if self.type == Status.FOR:
            if len(self.split_list) != 5:
                raise ValueError(f"for range syntax error: {self.value}")
            if self.sql_slice is not None and self.sql_slice.has_same_name(self.split_list[2]):
                raise ValueError("cannot use the same value name in different for loops")
            self.for_range.index = self.split_list[1]
            self.for_range.value = self.split_list[2]
            self.for_range.range_list = self.split_list[4]


@dataclass
class _Clause:
    var_name: str = ""
    type: Status = Status.UNKNOWN


@dataclass
class SQLClause(_Clause):
    """Plain SQL text, possibly with bound data and quoted variables."""

    value: list[str] = field(default_factory=list)

    def __str__(self) -> str:
        sql = "+".join(self.value)
        if sql.startswith('"'):
            sql = '"' + sql.lstrip('" ')
        if not sql.endswith(' "'):
            sql += '+" "'
        return sql.replace('"+"', "")

    def create(self) -> str:
        return f"{self.var_name}.WriteString({self})"

    def finish(self) -> str:
        return f"{self.var_name}.WriteString({self})"


@dataclass
class IfClause(_Clause):
    """An if template and what it encloses."""

    value: list[Any] = field(default_factory=list)
    part: Part = field(default_factory=Part)

    def __str__(self) -> str:
        return self.part.value

    def create(self) -> str:
        return f"{self} {{"

    def finish(self) -> str:
        return "}"


@dataclass
class ElseClause(IfClause):
    """An else template and what follows it up to the enclosing end."""

    def create(self) -> str:
        return f"}} {self} {{"

    def finish(self) -> str:
        return ""


@dataclass
class WhereClause(_Clause):
    """A where template that builds its own condition text."""

    value: list[Any] = field(default_factory=list)

    def __str__(self) -> str:
        return f"helper.WhereTrim({self.var_name}.String())"

    def create(self) -> str:
        return f"var {self.var_name} strings.Builder"

    def finish(self, name: str) -> str:
        return f"helper.JoinWhereBuilder(&{name},{self.var_name})"


@dataclass
class SetClause(_Clause):
    """A set template that builds its own assignment text."""

    value: list[Any] = field(default_factory=list)

    def __str__(self) -> str:
        return f"helper.SetTrim({self.var_name}.String())"

    def create(self) -> str:
        return f"var {self.var_name} strings.Builder"

    def finish(self, name: str) -> str:
        return f"helper.JoinSetBuilder(&{name},{self.var_name})"


@dataclass
class TrimClause(_Clause):
    """A trim template whose text is trimmed before joining."""

    value: list[Any] = field(default_factory=list)

    def __str__(self) -> str:
        return f"helper.TrimALL({self.var_name}.String())"

    def create(self) -> str:
        return f"var {self.var_name} strings.Builder"

    def finish(self, name: str) -> str:
        return f"helper.JoinTrimAllBuilder(&{name},{self.var_name})"


@dataclass
class ForClause(_Clause):
    """A for template and what it encloses."""

    value: list[Any] = field(default_factory=list)
    for_range: ForRange = field(default_factory=ForRange)
    for_slice: Part = field(default_factory=Part)

    def __str__(self) -> str:
        return self.for_slice.value + "{"

    def create(self) -> str:
        return str(self)

    def finish(self) -> str:
        return "}"


class Section:
    """A split SQL template and the generator statements built from it."""

    def __init__(self) -> None:
        self.members: list[Part] = []
        self.tmpls: list[str] = []
        self.current_index = 0
        self.clause_total: dict[Status, int] = {Status.WHERE: 0, Status.SET: 0}
        self.for_value: list[ForRange] = []

    def _next(self) -> Part:
        if self.current_index < len(self.members) - 1:
            self.current_index += 1
            return self.members[self.current_index]
        return Part(type=Status.END)

    def _current(self) -> Part:
        return self.members[self.current_index]

    def sub_index(self) -> None:
        """Step back to the previous part."""
        self.current_index -= 1

    def has_more(self) -> bool:
        return self.current_index < len(self.members) - 1

    def is_null(self) -> bool:
        return not self.members

    def has_same_name(self, value: str) -> bool:
        return any(p.type == Status.FOR and p.for_range.value == value for p in self.members)

    def build_sql(self) -> list[Any]:
        """Turn the parts into clauses, collecting generator statements in tmpls."""
        if self.is_null():
            raise ValueError("sql is null")
        name = "generateSQL"
        result: list[Any] = []
        while True:
            c = self._current()
            if c.type in _SQL_LIKE:
                sql_clause = self._parse_sql(name)
                result.append(sql_clause)
                self.tmpls.append(sql_clause.finish())
            elif c.type == Status.IF:
                if_clause = self._parse_if(name)
                result.append(if_clause)
                self.tmpls.append(if_clause.finish())
            elif c.type == Status.WHERE:
                where_clause = self._parse_where()
                result.append(where_clause)
                self.tmpls.append(where_clause.finish(name))
            elif c.type == Status.SET:
                set_clause = self._parse_set()
                result.append(set_clause)
                self.tmpls.append(set_clause.finish(name))
            elif c.type == Status.TRIM:
                trim_clause = self._parse_trim()
                result.append(trim_clause)
                self.tmpls.append(trim_clause.finish(name))
            elif c.type == Status.FOR:
                for_clause = self._parse_for(name)
                result.append(for_clause)
                self.tmpls.append(for_clause.finish())
            elif c.type != Status.END:
                raise ValueError(f"unknow clause:{c.value}")
            if not self.has_more():
                break
            self._next()
        return result

    def _parse_if(self, name: str) -> IfClause:
        res = IfClause(part=self._current())
        self.tmpls.append(res.create())
        if not self.has_more():
            return res
        c = self._next()
        while True:
            if c.type in _SQL_LIKE:
                sql_clause = self._parse_sql(name)
                res.value.append(sql_clause)
                self.tmpls.append(sql_clause.finish())
            elif c.type == Status.IF:
                if_clause = self._parse_if(name)
                res.value.append(if_clause)
                self.tmpls.append(if_clause.finish())
            elif c.type == Status.WHERE:
                where_clause = self._parse_where()
                res.value.append(where_clause)
                self.tmpls.append(where_clause.finish(name))
            elif c.type == Status.SET:
                set_clause = self._parse_set()
                res.value.append(set_clause)
                self.tmpls.append(set_clause.finish(name))
            elif c.type == Status.ELSE:
                res.value.append(self._parse_else(name))
            elif c.type == Status.FOR:
                for_clause = self._parse_for(name)
                res.value.append(for_clause)
                self.tmpls.append(res.finish())
            elif c.type == Status.TRIM:
                trim_clause = self._parse_trim()
                res.value.append(trim_clause)
                self.tmpls.append(trim_clause.finish(name))
            elif c.type == Status.END:
                return res
            else:
                raise ValueError(f"unknow clause : {c.value}")
            if not self.has_more():
                break
            c = self._next()
        if c.is_end():
            raise ValueError("incomplete SQL,if not end")
        return res

    def _parse_else(self, name: str) -> ElseClause:
        res = ElseClause(part=self._current())
        self.tmpls.append(res.create())
        if not self.has_more():
            return res
        c = self._next()
        while True:
            if c.type in _SQL_LIKE:
                sql_clause = self._parse_sql(name)
                res.value.append(sql_clause)
                self.tmpls.append(sql_clause.create())
            elif c.type == Status.IF:
                if_clause = self._parse_if(name)
                res.value.append(if_clause)
                self.tmpls.append(if_clause.finish())
            elif c.type == Status.WHERE:
                where_clause = self._parse_where()
                res.value.append(where_clause)
                self.tmpls.append(where_clause.finish(name))
            elif c.type == Status.SET:
                set_clause = self._parse_set()
                res.value.append(set_clause)
                self.tmpls.append(set_clause.finish(name))
            elif c.type == Status.ELSE:
                res.value.append(self._parse_else(name))
            elif c.type == Status.FOR:
                for_clause = self._parse_for(name)
                res.value.append(for_clause)
                self.tmpls.append(for_clause.finish())
            elif c.type == Status.TRIM:
                trim_clause = self._parse_trim()
                res.value.append(trim_clause)
                self.tmpls.append(trim_clause.finish(name))
            else:
                self.sub_index()
                return res
            if not self.has_more():
                break
            c = self._next()
        return res

    def _parse_block(self, res: Any, allow_trim: bool) -> Part:
        """Parse the body of a where/set/trim block; returns the last part seen."""
        c = self._current()
        while True:
            if c.type in _SQL_LIKE:
                sql_clause = self._parse_sql(res.var_name)
                res.value.append(sql_clause)
                self.tmpls.append(sql_clause.finish())
            elif c.type == Status.IF:
                if_clause = self._parse_if(res.var_name)
                res.value.append(if_clause)
                self.tmpls.append(if_clause.finish())
            elif c.type == Status.FOR:
                for_clause = self._parse_for(res.var_name)
                res.value.append(for_clause)
                self.tmpls.append(for_clause.finish())
            elif c.type == Status.WHERE:
                where_clause = self._parse_where()
                res.value.append(where_clause)
                self.tmpls.append(where_clause.finish(res.var_name))
            elif c.type == Status.TRIM and allow_trim:
                trim_clause = self._parse_trim()
                res.value.append(trim_clause)
                self.tmpls.append(trim_clause.finish(res.var_name))
            elif c.type == Status.END:
                return c
            else:
                raise ValueError(f"unknow clause : {c.value}")
            if not self.has_more():
                return c
            c = self._next()

    def _parse_where(self) -> WhereClause:
        c = self._current()
        res = WhereClause(var_name=self.get_name(c.type))
        self.tmpls.append(res.create())
        res.type = c.type
        if not self.has_more():
            return res
        self._next()
        last = self._parse_block(res, allow_trim=True)
        if not last.is_end():
            raise ValueError("incomplete SQL,where not end")
        return res

    def _parse_set(self) -> SetClause:
        c = self._current()
        res = SetClause(var_name=self.get_name(c.type))
        self.tmpls.append(res.create())
        if not self.has_more():
            return res
        res.type = self._next().type
        self._parse_block(res, allow_trim=True)
        return res

    def _parse_trim(self) -> TrimClause:
        c = self._current()
        res = TrimClause(var_name=self.get_name(c.type))
        self.tmpls.append(res.create())
        if not self.has_more():
            return res
        res.type = self._next().type
        self._parse_block(res, allow_trim=False)
        return res

    def _parse_for(self, name: str) -> ForClause:
        res = ForClause(for_slice=self._current())
        self.tmpls.append(res.create())
        self.for_value.append(res.for_slice.for_range)
        if not self.has_more():
            return res
        c = self._next()
        while True:
            if c.type in _SQL_LIKE:
                sql_clause = self._parse_sql(name)
                res.value.append(sql_clause)
                self.tmpls.append(f"{name}.WriteString({sql_clause})")
            elif c.type == Status.IF:
                if_clause = self._parse_if(name)
                res.value.append(if_clause)
                self.tmpls.append(if_clause.finish())
            elif c.type == Status.FOR:
                for_clause = self._parse_for(name)
                res.value.append(for_clause)
                self.tmpls.append(for_clause.finish())
            elif c.type == Status.TRIM:
                trim_clause = self._parse_trim()
                res.value.append(trim_clause)
                self.tmpls.append(trim_clause.finish(name))
            elif c.type == Status.END:
                self.for_value.pop()
                return res
            else:
                raise ValueError(f"unknow clause : {c.value}")
            if not self.has_more():
                break
            c = self._next()
        if c.is_end():
            raise ValueError("incomplete SQL,set not end")
        return res

    def _parse_sql(self, name: str) -> SQLClause:
        res = SQLClause(var_name=name, type=Status.SQL)
        while True:
            c = self._current()
            if c.type in (Status.SQL, Status.VARIABLE):
                res.value.append(c.value)
            elif c.type == Status.DATA:
                self.tmpls.append(f"params = append(params,{c.value})")
                res.value.append('"?"')
            else:
                self.sub_index()
                return res
            if not self.has_more():
                return res
            self._next()

    def check_sql_var(self, param: str, status: Status, method: Any) -> Part:
        """Make the part for a @data or @@variable reference in the SQL."""
        if status == Status.VARIABLE and param == "table":
            return Part(type=Status.SQL, value=_quote(method.table))
        if status == Status.DATA:
            method.has_for_params = True
        if status == Status.VARIABLE:
            param = f"{method.s}.Quote({param})"
        return Part(type=status, value=param)

    def get_name(self, status: Status) -> str:
        """Name of the builder variable for a new where/set/trim block."""
        prefixes = {Status.WHERE: "whereSQL", Status.SET: "setSQL", Status.TRIM: "trimSQL"}
        prefix = prefixes.get(status)
        if prefix is None:
            return "generateSQL"
        count = self.clause_total.get(status, 0)
        self.clause_total[status] = count + 1
        return f"{prefix}{count}"

    def check_template(self, tmpl: str) -> Part:
        """Parse a {{...}} template, raising ValueError on bad syntax."""
        part = Part(value=tmpl, sql_slice=self)
        part.split_template()
        part.check_template()
        return part