"""Model generation configuration and table column conversion."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from .model import (
    DEFAULT_MODEL_PKG,
    TAG_KEY_GORM_AUTO_INCREMENT,
    TAG_KEY_GORM_COLUMN,
    TAG_KEY_GORM_COMMENT,
    TAG_KEY_GORM_DEFAULT,
    TAG_KEY_GORM_INDEX,
    TAG_KEY_GORM_NOT_NULL,
    TAG_KEY_GORM_PRIMARY_KEY,
    TAG_KEY_GORM_TYPE,
    TAG_KEY_GORM_UNIQUE_INDEX,
    TAG_KEY_JSON,
    Field,
    GormTag,
    Index,
    Tag,
    map_data_type,
    sort_options,
)


@dataclass(frozen=True)
class ColumnType:
    """What the database reports about a column; None means not reported."""

    name: str
    database_type_name: str = ""
    column_type: Optional[str] = None
    scan_type: Optional[str] = None
    nullable: Optional[bool] = None
    primary_key: Optional[bool] = None
    auto_increment: Optional[bool] = None
    default_value: Optional[str] = None
    comment: Optional[str] = None


DataTypeMapping = Callable[[ColumnType], str]


def _fixed(go_type: str) -> DataTypeMapping:
    return lambda _column: go_type


_DEFAULT_TYPES = {
    "bytea": "[]byte",
    "boolean": "bool",
    "date": "types.Date",
    "time": "types.Time",
    "timestamp": "time.Time",
    "json": "types.JSON",
    "jsonb": "types.JSON",
    "xml": "types.XML",
    "money": "types.Money",
    "uuid": "types.UUID",
    "inet": "types.Inet",
    "cidr": "types.CIDR",
    "macaddr": "types.MACAddr",
    "point": "types.Point",
    "box": "types.Box",
    "path": "types.Path",
    "polygon": "types.Polygon",
    "circle": "types.Circle",
    "bit": "types.BitString",
    "varbit": "types.BitString",
    "_text": "[]string",
    "_varchar": "[]string",
    "_bpchar": "[]string",
    "_char": "[]string",
    "_int2": "[]int32",
    "_int4": "[]int32",
    "_int8": "[]int64",
    "_float4": "[]float32",
    "_float8": "[]float64",
    "_bool": "[]bool",
    "_uuid": "[]string",
    "_numeric": "[]float64",
    "text[]": "[]string",
    "varchar[]": "[]string",
    "char[]": "[]string",
    "int2[]": "[]int32",
    "int4[]": "[]int32",
    "integer[]": "[]int32",
    "int8[]": "[]int64",
    "bigint[]": "[]int64",
    "float4[]": "[]float32",
    "real[]": "[]float32",
    "float8[]": "[]float64",
    "double precision[]": "[]float64",
    "boolean[]": "[]bool",
    "uuid[]": "[]string",
    "numeric[]": "[]float64",
    "int4range": "types.Int4Range",
    "int8range": "types.Int8Range",
    "numrange": "types.NumRange",
    "tsrange": "types.TsRange",
    "tstzrange": "types.TstzRange",
    "daterange": "types.DateRange",
    "tsvector": "types.TSVector",
    "tsquery": "types.TSQuery",
}

DEFAULT_DATA_TYPE_MAP: dict[str, DataTypeMapping] = {
    name: _fixed(go_type) for name, go_type in _DEFAULT_TYPES.items()
}


def _base_name(path: str) -> str:
    trimmed = path.rstrip("/")
    if not trimmed:
        return "/" if path else "."
    return re.split(r"/", trimmed)[-1]


@dataclass
class Config:
    """Settings for generating one model."""

    model_pkg: str = ""
    table_prefix: str = ""
    table_name: str = ""
    model_name: str = ""

    import_pkg_paths: list[str] = field(default_factory=list)
    model_opts: list[Any] = field(default_factory=list)

    schema_name_opts: list[Callable[[Any], str]] = field(default_factory=list)
    table_name_ns: Optional[Callable[[str], str]] = None
    model_name_ns: Optional[Callable[[str], str]] = None
    file_name_ns: Optional[Callable[[str], str]] = None

    data_type_map: Optional[dict[str, DataTypeMapping]] = None
    field_nullable: bool = False
    field_coverable: bool = False
    field_signable: bool = False
    field_with_index_tag: bool = False
    field_with_type_tag: bool = False
    field_json_tag_ns: Optional[Callable[[str], str]] = None

    modify_opts: list[Any] = field(default_factory=list)
    filter_opts: list[Any] = field(default_factory=list)
    create_opts: list[Any] = field(default_factory=list)
    method_opts: list[Any] = field(default_factory=list)

    def preprocess(self) -> Config:
        """Fill in defaults and sort the model options; returns self."""
        if not self.model_pkg:
            self.model_pkg = DEFAULT_MODEL_PKG
        self.model_pkg = _base_name(self.model_pkg)
        self.modify_opts, self.filter_opts, self.create_opts, self.method_opts = sort_options(
            self.model_opts
        )
        if self.data_type_map is None:
            self.data_type_map = DEFAULT_DATA_TYPE_MAP
        return self

    def get_names(self) -> tuple[str, str, str]:
        """Return the table name, struct name and file name."""
        table_name, struct_name = self.table_name, self.model_name
        if self.model_name_ns is not None:
            struct_name = self.model_name_ns(table_name)
        if self.table_name_ns is not None:
            table_name = self.table_name_ns(table_name)
        if table_name and not table_name.startswith(self.table_prefix):
            table_name = self.table_prefix + table_name

        file_name = table_name.lower()
        if self.file_name_ns is not None:
            file_name = self.file_name_ns(self.table_name)
        return table_name, struct_name, file_name

    def get_model_methods(self) -> list[Any]:
        return [method for opt in self.method_opts for method in opt.methods()]

    def get_schema_name(self, db: Any) -> str:
        for opt in self.schema_name_opts:
            name = opt(db)
            if name:
                return name
        return ""


_NUMERIC_TYPES = frozenset({
    "int", "int8", "int16", "int32", "int64",
    "uint", "uint8", "uint16", "uint32", "uint64",
    "float32", "float64",
})


def _scan_kind(type_name: str) -> str:
    if type_name == "bool":
        return "bool"
    if type_name in _NUMERIC_TYPES:
        return "number"
    if type_name == "string":
        return "string"
    if type_name.startswith(("[]", "*", "map[", "chan ", "func(")) or type_name in (
        "interface {}", "interface{}", "any",
    ):
        return "other"
    return "struct"


@dataclass
class Column:
    """A table column that can be turned into a model field."""

    column_type: ColumnType
    table_name: str = ""
    indexes: list[Optional[Index]] = field(default_factory=list)
    use_scan_type: bool = False
    _data_type_map: Optional[dict[str, DataTypeMapping]] = field(
        default=None, init=False, repr=False
    )
    _json_tag_ns: Optional[Callable[[str], str]] = field(default=None, init=False, repr=False)

    @property
    def name(self) -> str:
        return self.column_type.name

    def set_data_type_map(self, mapping: Optional[dict[str, DataTypeMapping]]) -> None:
        self._data_type_map = mapping

    def with_ns(self, json_tag_ns: Optional[Callable[[str], str]]) -> None:
        self._json_tag_ns = json_tag_ns if json_tag_ns is not None else (lambda n: n)

    def get_data_type(self) -> str:
        """Go type for the column: custom map, then scan type, then built-in mapping."""
        ct = self.column_type
        mapping = (self._data_type_map or {}).get(ct.database_type_name.lower())
        if mapping is not None:
            return mapping(ct)
        if self.use_scan_type and ct.scan_type:
            return ct.scan_type
        return map_data_type(ct.database_type_name, self._detail_type())

    def to_field(self, nullable: bool, coverable: bool, signable: bool) -> Field:
        """Build the model field for this column."""
        ct = self.column_type
        field_type = self.get_data_type()
        if signable and "unsigned" in self._detail_type() and field_type.startswith("int"):
            field_type = "u" + field_type

        if self.name == "deleted_at" and field_type == "time.Time":
            field_type = "gorm.DeletedAt"
        elif coverable and self._need_default_tag(self._default_tag_value()):
            field_type = "*" + field_type
        elif nullable and not field_type.startswith("*") and ct.nullable:
            field_type = "*" + field_type

        json_ns = self._json_tag_ns or (lambda n: n)
        return Field(
            name=self.name,
            type=field_type,
            column_name=self.name,
            multiline_comment=self._multiline_comment(),
            gorm_tag=self._build_gorm_tag(),
            tag=Tag({TAG_KEY_JSON: json_ns(self.name)}),
            column_comment=ct.comment or "",
        )

    def _multiline_comment(self) -> bool:
        comment = self.column_type.comment
        return comment is not None and "\n" in comment

    def _build_gorm_tag(self) -> GormTag:
        ct = self.column_type
        tag = GormTag({
            TAG_KEY_GORM_COLUMN: [self.name],
            TAG_KEY_GORM_TYPE: [self._detail_type()],
        })
        if ct.primary_key:
            tag.set(TAG_KEY_GORM_PRIMARY_KEY, "")
            if ct.auto_increment is not None:
                tag.set(TAG_KEY_GORM_AUTO_INCREMENT, "true" if ct.auto_increment else "false")
        elif ct.nullable is False:
            tag.set(TAG_KEY_GORM_NOT_NULL, "")

        for idx in self.indexes:
            if idx is None or idx.primary_key:
                continue
            key = TAG_KEY_GORM_UNIQUE_INDEX if idx.unique else TAG_KEY_GORM_INDEX
            tag.append(key, f"{idx.name},priority:{idx.priority}")

        default = self._default_tag_value()
        if self._need_default_tag(default):
            tag.set(TAG_KEY_GORM_DEFAULT, default)
        comment = ct.comment
        if comment:
            if self._multiline_comment():
                comment = comment.replace("\n", "\\n")
            tag.set(TAG_KEY_GORM_COMMENT, comment)
        return tag

    def _need_default_tag(self, default: str) -> bool:
        if not default:
            return False
        timestamp_column = self.name in ("created_at", "updated_at")
        scan_type = self.column_type.scan_type
        if not scan_type:
            return not timestamp_column and default not in ("0", "false")
        kind = _scan_kind(scan_type)
        if kind == "bool":
            return default != "false"
        if kind == "number":
            return default != "0"
        if kind == "string":
            return default != ""
        if kind == "struct":
            return default.strip("'0:-") != ""
        return not timestamp_column

    def _default_tag_value(self) -> str:
        value = self.column_type.default_value
        if value is None:
            return ""
        if value and not value.strip():
            return "'" + value + "'"
        return value

    def _detail_type(self) -> str:
        ct = self.column_type
        if ct.column_type is not None:
            return ct.column_type
        return ct.database_type_name