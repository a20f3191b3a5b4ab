"""Methods declared on user interfaces, checked and turned into SQL builders."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Iterable, Optional

from .model import GORM_KEYWORDS, SQLBuffer, Status
from .parser import Param
from .section import Part, Section
from .section import _quote as quote_literal
from .utils import is_end

_UNDEFINED_PACKAGE = "UNDEFINED"


def _params_to_string(params: Iterable[Param]) -> str:
    return ",".join(param.tmpl_string() for param in params)


@dataclass
class InterfaceMethod:
    """A method of a user interface, generated for one query struct."""

    doc: str = ""
    s: str = ""
    origin_struct: Param = field(default_factory=Param)
    target_struct: str = ""
    method_name: str = ""
    params: list[Param] = field(default_factory=list)
    result: list[Param] = field(default_factory=list)
    result_data: Param = field(default_factory=Param)
    section: Optional[Section] = None
    sql_params: list[Param] = field(default_factory=list)
    sql_string: str = ""
    gorm_option: str = ""
    table: str = ""
    interface_name: str = ""
    package: str = ""
    has_for_params: bool = False

    def func_sign(self) -> str:
        return f"{self.method_name}({self.get_param_in_tmpl()}) ({self.get_result_param_in_tmpl()})"

    def has_sql_data(self) -> bool:
        """Whether the generated code needs a params list."""
        return bool(self.sql_params) or self.has_for_params

    def has_got_point(self) -> bool:
        return not self.has_need_new_result()

    def has_need_new_result(self) -> bool:
        data = self.result_data
        return not data.is_array and ((data.is_null() and data.is_time()) or data.is_map())

    def gorm_run_method_name(self) -> str:
        return "Find" if self.result_data.is_array else "Take"

    def return_sql_result(self) -> bool:
        return any(res.is_sql_result() for res in self.result)

    def return_sql_row(self) -> bool:
        return any(res.is_sql_row() for res in self.result)

    def return_sql_rows(self) -> bool:
        return any(res.is_sql_rows() for res in self.result)

    def return_nothing(self) -> bool:
        return not any(res.is_error() or res.name == "rowsAffected" for res in self.result)

    def return_rows_affected(self) -> bool:
        return any(res.name == "rowsAffected" for res in self.result)

    def return_error(self) -> bool:
        return any(res.is_error() for res in self.result)

    def is_repeat_from_different_interface(self, other: InterfaceMethod) -> bool:
        return (
            self.method_name == other.method_name
            and self.interface_name != other.interface_name
            and self.target_struct == other.target_struct
        )

    def is_repeat_from_same_interface(self, other: InterfaceMethod) -> bool:
        return (
            self.method_name == other.method_name
            and self.interface_name == other.interface_name
            and self.target_struct == other.target_struct
        )

    def get_param_in_tmpl(self) -> str:
        return _params_to_string(self.params)

    def get_result_param_in_tmpl(self) -> str:
        return _params_to_string(self.result)

    def sql_param_name(self, param: str) -> str:
        return param.replace(".", "")

    def doc_comment(self) -> str:
        """The doc text with a comment marker on every line."""
        return self.doc.strip().replace("\n", "\n// ").replace("//  ", "// ")

    def check_method(self, methods: Iterable[InterfaceMethod], meta: Any) -> None:
        """Raise ValueError if the method name clashes with keywords, methods or fields."""
        if GORM_KEYWORDS.full_match(self.method_name):
            raise ValueError(f"can not use keyword as method name:{self.method_name}")
        for method in methods or ():
            if self.is_repeat_from_different_interface(method):
                raise ValueError(
                    "can not generate method with the same name from different interface:"
                    f"[{self.interface_name}.{self.method_name}] and "
                    f"[{method.interface_name}.{method.method_name}]"
                )
        for fld in meta.fields:
            if fld.name == self.method_name:
                raise ValueError(
                    "can not generate method same name with struct field:"
                    f"[{self.interface_name}.{self.method_name}] and "
                    f"[{meta.model_struct_name}.{fld.name}]"
                )

    def check_params(self, params: Iterable[Param]) -> None:
        """Resolve placeholder types in the parameters and store them."""
        checked: list[Param] = []
        for original in params or ():
            param = replace(original)
            if param.package == _UNDEFINED_PACKAGE:
                param.package = self.package
            elif param.is_error() or param.is_null():
                raise ValueError(
                    f"type error on interface [{self.interface_name}] param: [{param.name}]"
                )
            elif param.is_gen_m():
                param.type = "map[string]interface{}"
                param.package = ""
            elif param.is_gen_t():
                param.type = self.origin_struct.type
                param.package = self.origin_struct.package
            checked.append(param)
        self.params = checked

    def check_result(self, result: Iterable[Param]) -> None:
        """Check the results, name them and work out how the SQL is run."""
        where = f"[{self.interface_name}.{self.method_name}]"
        checked: list[Param] = []
        has_error = False
        for original in result or ():
            param = replace(original)
            if param.package == _UNDEFINED_PACKAGE:
                param.package = self.package
            if param.is_gen_m():
                param.type = "map[string]interface{}"
                param.package = ""

            if param.in_main_pkg():
                raise ValueError(f"query method cannot return struct of main package in {where}")
            if param.is_error():
                if has_error:
                    raise ValueError(f"query method cannot return more than 1 error value in {where}")
                param.name = "err"
                has_error = True
            elif param.eq(self.origin_struct) or param.is_gen_t():
                if not self.result_data.is_null():
                    raise ValueError(f"query method cannot return more than 1 data value in {where}")
                param.name = "result"
                param.type = self.origin_struct.type
                param.package = self.origin_struct.package
                self.result_data = param
            elif param.is_interface():
                raise ValueError(f"query method can not return interface in {where}")
            elif param.is_gen_rows_affected():
                param.type = "int64"
                param.package = ""
                param.name = "rowsAffected"
                self.gorm_option = "Exec"
            elif param.is_sql_result():
                param.type = "Result"
                param.package = "sql"
                param.name = "result"
                self.gorm_option = "Statement.ConnPool.ExecContext"
            elif param.is_sql_row():
                param.type = "Row"
                param.package = "sql"
                param.name = "row"
                param.is_pointer = True
                self.gorm_option = "Raw"
            elif param.is_sql_rows():
                param.type = "Rows"
                param.package = "sql"
                param.name = "rows"
                param.is_pointer = True
                self.gorm_option = "Raw"
            else:
                if not self.result_data.is_null():
                    raise ValueError(f"query method cannot return more than 1 data value in {where}")
                if not param.package and not (
                    param.is_base_type() or param.is_map() or param.is_time()
                ):
                    param.package = self.package
                param.name = "result"
                self.result_data = param
            checked.append(param)
        self.result = checked

    def check_sql(self) -> None:
        """Take the SQL from the doc comment and split it into sections."""
        self.sql_string = self._parse_doc_string()
        try:
            self.split_sql()
        except ValueError as exc:
            raise ValueError(
                f"interface {self.interface_name} member method {self.method_name} "
                f"check sql err:{exc}"
            ) from exc

    def _parse_doc_string(self) -> str:
        doc = self._get_sql_doc_string().strip()
        lowered = doc.lower()
        if lowered.startswith("where("):
            doc = doc[6:-1]
            self.gorm_option = "Where"
        else:
            if lowered.startswith("sql("):
                doc = doc[4:-1]
            self.gorm_option = "Raw" if not self.result_data.is_null() else "Exec"

        if len(doc) >= 2 and doc.startswith('"') and doc.endswith('"'):
            doc = doc[1:-1]
        return doc

    def _get_sql_doc_string(self) -> str:
        doc = self.doc.strip()
        index = doc.find("\n\n")
        if index != -1:
            if self.method_name in doc[index + 2:]:
                doc = doc[:index]
            else:
                doc = doc[index + 2:]
        if self.method_name and doc.startswith(self.method_name):
            doc = doc[len(self.method_name):]
        return doc

    def split_sql(self) -> None:
        """Scan the SQL string into sections, raising ValueError on bad syntax."""
        sql = self.sql_string
        n = len(sql)
        section = Section()
        self.section = section
        buf = SQLBuffer()

        def incomplete() -> ValueError:
            return ValueError(f"incomplete SQL:{sql}")

        def flush_sql() -> None:
            clause = buf.dump()
            if clause.strip():
                section.members.append(Part(type=Status.SQL, value=quote_literal(clause)))

        def read_quoted(i: int, quote: str) -> int:
            """Copy a quoted run starting after the opening quote; return the closing index."""
            while True:
                if i >= n:
                    raise incomplete()
                buf.write(sql[i])
                if sql[i] == quote and sql[i - 1] != "\\":
                    return i
                i += 1

        i = 0
        while i < n:
            b = sql[i]
            if b in ('"', "'"):
                buf.write(b)
                i = read_quoted(i + 1, b)
            elif b == "\\":
                if i + 1 < n and sql[i + 1] == "@":
                    i += 1
                    buf.write_sql(sql[i])
                else:
                    buf.write_sql(b)
            elif b in ("{", "@"):
                flush_sql()
                if i + 1 >= n:
                    raise incomplete()
                if b == "{" and sql[i + 1] == "{":
                    i += 2
                    while True:
                        if i >= n:
                            raise incomplete()
                        if sql[i] == '"':
                            buf.write(sql[i])
                            i = read_quoted(i + 1, '"') + 1
                        if i + 1 >= n:
                            raise incomplete()
                        if sql[i] == "}" and sql[i + 1] == "}":
                            i += 1
                            clause = buf.dump()
                            try:
                                part = section.check_template(clause)
                            except ValueError as exc:
                                raise ValueError(
                                    f"sql [{sql}] dynamic template {clause} err:{exc}"
                                ) from exc
                            section.members.append(part)
                            break
                        buf.write_sql(sql[i])
                        i += 1
                if b == "@":
                    i += 1
                    status = Status.DATA
                    if i < n and sql[i] == "@":
                        i += 1
                        status = Status.VARIABLE
                    while True:
                        if i >= n or is_end(sql[i]):
                            var = buf.dump()
                            section.members.append(section.check_sql_var(var, status, self))
                            i -= 1
                            break
                        buf.write_sql(sql[i])
                        i += 1
            else:
                buf.write_sql(b)
            i += 1
        flush_sql()

    def _check_sql_var_by_params(self, param: str, status: Status) -> Part:
        """Resolve a SQL variable against the method parameters or the table name."""
        struct_name = param.split(".")[0]
        for p in self.params:
            if p.name != struct_name:
                continue
            if p.name != param:
                p = Param(name=param, type="string")
            if status == Status.DATA:
                if not self._is_param_exist(param):
                    self.sql_params.append(p)
            elif status == Status.VARIABLE:
                if p.type != "string" or p.is_array:
                    raise ValueError(
                        f"variable name must be string :{param} type is {p.type_name()}"
                    )
                param = f"{self.s}.Quote({param})"
            return Part(type=status, value=param)
        if param == "table":
            return Part(type=Status.SQL, value=quote_literal(self.table))
        raise ValueError(f"unknow variable param:{param}")

    def _is_param_exist(self, name: str) -> bool:
        return any(param.name == name for param in self.sql_params)

    def get_test_param_in_tmpl(self) -> str:
        """Arguments of the method as read from a generated test case."""
        args = []
        for position, param in enumerate(self.params):
            typ = param.type
            if param.package:
                typ = f"{param.package}.{typ}"
            if param.is_array:
                typ = "[]" + typ
            if param.is_pointer:
                typ = "*" + typ
            args.append(f"tt.Input.Args[{position}].({typ})")
        return ",".join(args)

    def get_test_result_param_in_tmpl(self) -> str:
        return ",".join(f"res{position}" for position in range(1, len(self.result) + 1))

    def get_assert_in_tmpl(self) -> str:
        name = quote_literal(self.method_name)
        return "\n".join(
            f"assert(t, {name}, res{position + 1}, tt.Expectation.Ret[{position}])"
            for position in range(len(self.result))
        )