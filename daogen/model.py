"""Core model types: statuses, keywords, struct tags, fields, options and indexes."""

from __future__ import annotations

import enum
from dataclasses import dataclass, replace
from dataclasses import field as dc_field
from typing import Any, Callable, ClassVar, Iterable, Optional

DEFAULT_MODEL_PKG = "model"

TAG_KEY_GORM = "gorm"
TAG_KEY_JSON = "json"

TAG_KEY_GORM_COLUMN = "column"
TAG_KEY_GORM_TYPE = "type"
TAG_KEY_GORM_PRIMARY_KEY = "primaryKey"
TAG_KEY_GORM_AUTO_INCREMENT = "autoIncrement"
TAG_KEY_GORM_NOT_NULL = "not null"
TAG_KEY_GORM_UNIQUE_INDEX = "uniqueIndex"
TAG_KEY_GORM_INDEX = "index"
TAG_KEY_GORM_DEFAULT = "default"
TAG_KEY_GORM_COMMENT = "comment"

_TAG_KEY_PRIORITIES = {
    TAG_KEY_GORM: 100,
    TAG_KEY_JSON: 99,
    TAG_KEY_GORM_COLUMN: 10,
    TAG_KEY_GORM_TYPE: 9,
    TAG_KEY_GORM_PRIMARY_KEY: 8,
    TAG_KEY_GORM_AUTO_INCREMENT: 7,
    TAG_KEY_GORM_NOT_NULL: 6,
    TAG_KEY_GORM_UNIQUE_INDEX: 5,
    TAG_KEY_GORM_INDEX: 4,
    TAG_KEY_GORM_DEFAULT: 3,
    TAG_KEY_GORM_COMMENT: 0,
}


class Status(enum.IntEnum):
    """Kind of a piece of a split SQL template."""

    UNKNOWN = 0
    SQL = 1
    DATA = 2
    VARIABLE = 3
    IF = 4
    ELSE = 5
    WHERE = 6
    SET = 7
    FOR = 8
    END = 9
    TRIM = 10


class SourceCode(enum.IntEnum):
    """Where a model definition came from."""

    STRUCT = 0
    TABLE = 1
    OBJECT = 2


@dataclass(frozen=True)
class KeyWord:
    """A set of reserved words."""

    words: tuple[str, ...]

    def full_match(self, word: str) -> bool:
        return word in self.words

    def contain(self, text: str) -> bool:
        return any(item in text for item in self.words)


GORM_KEYWORDS = KeyWord((
    "UnderlyingDB", "UseDB", "UseModel", "UseTable", "Quote", "Debug", "TableName", "WithContext",
    "As", "Not", "Or", "Build", "Columns", "Hints",
    "Distinct", "Omit",
    "Select", "Where", "Order", "Group", "Having", "Limit", "Offset",
    "Join", "LeftJoin", "RightJoin",
    "Save", "Create", "CreateInBatches",
    "Update", "Updates", "UpdateColumn", "UpdateColumns",
    "Find", "FindInBatches", "First", "Take", "Last", "Pluck", "Count",
    "Scan", "ScanRows", "Row", "Rows",
    "Delete", "Unscoped",
    "Scopes",
))

DO_KEYWORDS = KeyWord(("Alias", "TableName", "WithContext"))

GEN_KEYWORDS = KeyWord(("generateSQL", "whereClause", "setClause"))

_DEFAULT_DATA_TYPE = "string"

_DATA_TYPES = {
    "numeric": "int32",
    "integer": "int32",
    "int": "int32",
    "smallint": "int32",
    "mediumint": "int32",
    "bigint": "int64",
    "float": "float32",
    "real": "float64",
    "double": "float64",
    "decimal": "float64",
    "char": "string",
    "varchar": "string",
    "tinytext": "string",
    "mediumtext": "string",
    "longtext": "string",
    "binary": "[]byte",
    "varbinary": "[]byte",
    "tinyblob": "[]byte",
    "blob": "[]byte",
    "mediumblob": "[]byte",
    "longblob": "[]byte",
    "text": "string",
    "json": "string",
    "enum": "string",
    "time": "time.Time",
    "date": "time.Time",
    "datetime": "time.Time",
    "timestamp": "time.Time",
    "year": "int32",
    "bit": "[]uint8",
    "boolean": "bool",
}


def map_data_type(data_type: str, detail_type: str) -> str:
    """Map a database type name to a Go type, using the detail type where it matters."""
    key = data_type.lower()
    if key == "tinyint":
        return "bool" if detail_type.strip().startswith("tinyint(1)") else "int32"
    return _DATA_TYPES.get(key, _DEFAULT_DATA_TYPE)


def _sorted_keys(keys: Iterable[str]) -> list[str]:
    return sorted(keys, key=lambda k: (-_TAG_KEY_PRIORITIES.get(k, 0), k))


class Tag(dict):
    """Struct tag: key to value, rendered as key:"value" pairs."""

    def set(self, key: str, value: str) -> None:
        self[key] = value

    def remove(self, key: str) -> None:
        self.pop(key, None)

    def build(self) -> str:
        return " ".join(
            f'{key}:"{value}"' for key in _sorted_keys(self) if key and (value := self[key])
        )


class GormTag(dict):
    """ORM tag: key to a list of values, rendered as key:value;... settings."""

    def set(self, key: str, value: str) -> None:
        self[key] = [value]

    def append(self, key: str, value: str) -> None:
        self.setdefault(key, []).append(value)

    def remove(self, key: str) -> None:
        self.pop(key, None)

    def build(self) -> str:
        parts: list[str] = []
        for key in _sorted_keys(self):
            values = self[key]
            if not values:
                if key:
                    parts.append(key)
                continue
            for value in values:
                piece = ":".join(p for p in (key, value) if p)
                if piece:
                    parts.append(piece)
        return ";".join(parts)


_TITLED_TYPES = frozenset({
    "string", "bytes",
    "int", "int8", "int16", "int32", "int64",
    "uint", "uint8", "uint16", "uint32", "uint64",
    "float64", "float32",
    "bool",
})


@dataclass
class Field:
    """A field of a generated model struct."""

    name: str = ""
    type: str = ""
    column_name: str = ""
    column_comment: str = ""
    multiline_comment: bool = False
    tag: Tag = dc_field(default_factory=Tag)
    gorm_tag: GormTag = dc_field(default_factory=GormTag)
    custom_gen_type: str = ""
    relation: Any = None

    def __post_init__(self) -> None:
        if not isinstance(self.tag, Tag):
            self.tag = Tag(self.tag or {})
        if not isinstance(self.gorm_tag, GormTag):
            self.gorm_tag = GormTag({k: list(v) for k, v in (self.gorm_tag or {}).items()})

    def tags(self) -> str:
        """Render all struct tags, folding the ORM tag in when none is set yet."""
        if TAG_KEY_GORM in self.tag:
            return self.tag.build()
        gorm = self.gorm_tag.build().strip()
        if gorm:
            self.tag.set(TAG_KEY_GORM, gorm)
        return self.tag.build()

    def is_relation(self) -> bool:
        return self.relation is not None

    def gen_type(self) -> str:
        """Name of the query field wrapper for this field."""
        if self.is_relation():
            return self.type
        if self.custom_gen_type:
            return self.custom_gen_type
        typ = self.type.lstrip("*")
        if typ in _TITLED_TYPES:
            return typ[:1].upper() + typ[1:]
        if typ == "time.Time":
            return "Time"
        if typ in ("json.RawMessage", "[]byte"):
            return "Bytes"
        if typ == "serializer":
            return "Serializer"
        return "Field"

    def escape_keyword(self) -> Field:
        return self.escape_keyword_for(GORM_KEYWORDS)

    def escape_keyword_for(self, keywords: KeyWord) -> Field:
        if keywords.full_match(self.name):
            self.name += "_"
        return self


class SQLBuffer:
    """Accumulates SQL text, collapsing runs of whitespace into one space."""

    def __init__(self) -> None:
        self._chars: list[str] = []

    def __len__(self) -> int:
        return len(self._chars)

    def __str__(self) -> str:
        return "".join(self._chars)

    def write(self, text: str) -> None:
        """Append text as is."""
        self._chars.extend(text)

    def write_sql(self, ch: str) -> None:
        """Append one character, turning whitespace into a single space."""
        if ch in ("\n", "\t", " "):
            if not self._chars or self._chars[-1] != " ":
                self._chars.append(" ")
        else:
            self._chars.append(ch)

    def dump(self) -> str:
        """Return the buffered text and empty the buffer."""
        text = "".join(self._chars)
        self._chars.clear()
        return text


FIELD_OPTION_TYPE = "field"
METHOD_OPTION_TYPE = "method"

FieldOperator = Callable[[Optional[Field]], Optional[Field]]


@dataclass(frozen=True)
class _FieldOption:
    operator: FieldOperator
    option_type: ClassVar[str] = FIELD_OPTION_TYPE


class ModifyFieldOpt(_FieldOption):
    """Option that changes a generated field."""


class FilterFieldOpt(_FieldOption):
    """Option that drops a field when its operator returns None."""


class CreateFieldOpt(_FieldOption):
    """Option that creates an extra field."""


@dataclass(frozen=True)
class AddMethodOpt:
    """Option that adds custom methods to the model."""

    methods: Callable[[], list]
    option_type: ClassVar[str] = METHOD_OPTION_TYPE


def sort_options(opts: Iterable[Any]) -> tuple[list, list, list, list]:
    """Split options into modify, filter, create and method options."""
    modify: list = []
    filters: list = []
    create: list = []
    methods: list = []
    for opt in opts or ():
        if isinstance(opt, ModifyFieldOpt):
            modify.append(opt)
        elif isinstance(opt, FilterFieldOpt):
            filters.append(opt)
        elif isinstance(opt, CreateFieldOpt):
            create.append(opt)
        elif isinstance(opt, AddMethodOpt):
            methods.append(opt)
    return modify, filters, create, methods


@dataclass(frozen=True)
class Index:
    """A table index, with the position of a column within it."""

    name: str
    columns: tuple[str, ...] = ()
    primary_key: Optional[bool] = None
    unique: Optional[bool] = None
    priority: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "columns", tuple(self.columns))


def group_by_column(index_list: Optional[Iterable[Optional[Index]]]) -> dict[str, list[Index]]:
    """Map each column to the indexes it belongs to, with its 1-based priority."""
    grouped: dict[str, list[Index]] = {}
    for idx in index_list or ():
        if idx is None:
            continue
        for position, column in enumerate(idx.columns, start=1):
            grouped.setdefault(column, []).append(replace(idx, priority=position))
    return grouped