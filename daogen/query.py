"""Query struct descriptions and the checks applied to custom interface methods."""

from __future__ import annotations

import copy
import re
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from .interface import InterfaceMethod
from .model import GORM_KEYWORDS, Field, KeyWord, SourceCode
from .parser import InterfaceInfo, Method, Param, default_method_table_name
from .utils import get_package_name, is_capitalize

_DB_TYPE_WRAPPERS = {
    "jsonb": "JSONB",
    "json": "JSON",
    "xml": "XML",
    "money": "Money",
    "inet": "Inet",
    "cidr": "CIDR",
    "macaddr": "MACAddr",
    "point": "Point",
    "box": "Box",
    "path": "Path",
    "polygon": "Polygon",
    "circle": "Circle",
    "bit": "BitString",
    "varbit": "BitString",
    "int4range": "Int4Range",
    "int8range": "Int8Range",
    "numrange": "NumRange",
    "tsrange": "TsRange",
    "tstzrange": "TstzRange",
    "daterange": "DateRange",
    "tsvector": "TSVector",
    "tsquery": "TSQuery",
}

_MODEL_NAME_RE = re.compile(r"^\w+$", re.ASCII)


@dataclass
class QueryStructMeta:
    """Description of a model and the query struct generated for it."""

    generated: bool = False
    file_name: str = ""
    s: str = ""
    query_struct_name: str = ""
    model_struct_name: str = ""
    table_name: str = ""
    table_comment: str = ""
    struct_info: Param = field(default_factory=Param)
    fields: list[Field] = field(default_factory=list)
    source: SourceCode = SourceCode.STRUCT
    import_pkg_paths: list[str] = field(default_factory=list)
    model_methods: list[Method] = field(default_factory=list)
    interface_mode: bool = False

    def revise_field_name(self) -> None:
        """Rename fields that clash with query method names."""
        self.revise_field_name_for(GORM_KEYWORDS)

    def revise_field_name_for(self, keywords: KeyWord) -> None:
        for fld in self.fields:
            fld.escape_keyword_for(keywords)

    def append_or_update_field(self, field: Field) -> None:
        """Add the field, or replace the field of the same name."""
        if field.is_relation():
            self.fields.append(field)
        if not field.column_name:
            return
        for position, existing in enumerate(self.fields):
            if existing.name == field.name:
                self.fields[position] = field
                return
        self.fields.append(field)

    def has_field(self) -> bool:
        return bool(self.fields)

    def check(self) -> None:
        """Raise ValueError if no query struct can be generated for this model."""
        if self.struct_info.in_main_pkg():
            raise ValueError(
                "can't generated data object for struct in main package, "
                f"ignore:{self.model_struct_name}"
            )
        if not is_capitalize(self.model_struct_name):
            raise ValueError(
                "can't generated data object for non-exportable struct, "
                f"ignore:{self.query_struct_name}"
            )

    def relations(self) -> list[Any]:
        return [fld.relation for fld in self.fields if fld.is_relation()]

    def struct_comment(self) -> str:
        if self.table_comment:
            return self.table_comment
        if self.table_name:
            return f"mapped from table <{self.table_name}>"
        return "mapped from object"

    def query_struct_comment(self) -> str:
        if self.table_comment:
            return f"// {self.query_struct_name} {self.table_comment}"
        return ""

    def revise_diy_method(self) -> None:
        """Bind custom methods to the model, dropping duplicates.

        A default TableName method is added when none is given. Raises
        ValueError naming the duplicates, after the methods have been revised.
        """
        duplicates: list[str] = []
        has_table_name = False
        methods: list[Method] = []
        seen: set[str] = set()
        for method in self.model_methods:
            if method.method_name in seen:
                duplicates.append(method.method_name)
                continue
            if method.method_name == "TableName":
                has_table_name = True
            method.receiver.package = ""
            method.receiver.type = self.model_struct_name
            self._parse_table_name(method)
            methods.append(method)
            seen.add(method.method_name)
        if not has_table_name:
            methods.append(default_method_table_name(self.model_struct_name))
        self.model_methods = methods

        if duplicates:
            raise ValueError(
                "can't generate struct with duplicated method, please check method name: "
                + ",".join(duplicates)
            )

    def _parse_table_name(self, method: Optional[Method]) -> None:
        if method is None or not method.body or "@@table" not in method.body:
            return
        method.body = method.body.replace('"@@table"', "TableName" + self.model_struct_name)
        method.body = method.body.replace("@@table", self.table_name)

    def iface_mode(self, on: bool) -> QueryStructMeta:
        """A copy of this description with interface mode switched on or off."""
        clone = copy.copy(self)
        clone.interface_mode = on
        return clone

    def return_object(self) -> str:
        """Type returned by chained query methods in generated code."""
        if self.interface_mode:
            return f"I{self.model_struct_name}Do"
        return f"*{self.query_struct_name}Do"


def field_wrapper_for_db_type(db_type: str) -> str:
    """Name of the query field wrapper for a database column type, or ''."""
    return _DB_TYPE_WRAPPERS.get(db_type.lower(), "")


def check_struct_name(name: str) -> None:
    """Raise ValueError unless the model name is empty or a capitalised identifier."""
    if not name:
        return
    if not _MODEL_NAME_RE.match(name):
        raise ValueError("model name cannot contains invalid character")
    if not "A" <= name[0] <= "Z":
        raise ValueError("model name must be initial capital")


def filter_field(field: Field, opts: Iterable[Any]) -> Optional[Field]:
    """The field, or None if any filter option rejects it."""
    for opt in opts or ():
        if opt.operator(field) is None:
            return None
    return field


def modify_field(field: Field, opts: Iterable[Any]) -> Field:
    """Apply every modify option to the field in turn."""
    for opt in opts or ():
        field = opt.operator(field)
    return field


def build_diy_method(
    interfaces: Iterable[InterfaceInfo],
    meta: QueryStructMeta,
    data: Optional[Iterable[InterfaceMethod]] = None,
) -> list[InterfaceMethod]:
    """Check the interface methods that apply to the model and build their SQL."""
    existing = list(data or ())
    results: list[InterfaceMethod] = []
    for info in interfaces:
        if not info.match_struct(meta.model_struct_name):
            continue
        for method in info.methods:
            built = InterfaceMethod(
                s=meta.s,
                target_struct=meta.query_struct_name,
                origin_struct=meta.struct_info,
                method_name=method.method_name,
                params=method.params,
                doc=method.doc,
                table=meta.table_name,
                interface_name=info.name,
                package=get_package_name(info.package),
            )
            built.check_method(existing, meta)
            built.check_params(method.params)
            built.check_result(method.result)
            built.check_sql()
            try:
                built.section.build_sql()
            except ValueError as exc:
                raise ValueError(f"sql [{built.sql_string}] build err:{exc}") from exc
            results.append(built)
    return results


def get_struct_names(bases: Iterable[QueryStructMeta]) -> list[str]:
    return [base.model_struct_name for base in bases]