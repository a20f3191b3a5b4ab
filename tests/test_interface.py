from types import SimpleNamespace

import pytest

from daogen.interface import InterfaceMethod
from daogen.model import Field
from daogen.parser import Param


def make_method():
    return InterfaceMethod(
        table="users",
        params=[
            Param(type="int", name="id"),
            Param(type="string", name="name"),
            Param(type="string", name="names", is_array=True),
        ],
    )


CLAUSE_CASES = [
    (
        "select * from @@table",
        ['"select * from "', '"users"'],
        ['generateSQL.WriteString("select * from users ")'],
    ),
    (
        "select * from @@table {{where}} id>@id{{end}}",
        ['"select * from "', '"users"', "where", '" id>"', "id", "end"],
        [
            'generateSQL.WriteString("select * from users ")',
            "var whereSQL0 strings.Builder",
            "params = append(params,id)",
            'whereSQL0.WriteString("id>? ")',
            "helper.JoinWhereBuilder(&generateSQL,whereSQL0)",
        ],
    ),
    (
        "select * from @@table {{where}}{{if id > 0}} id>@id{{end}}{{end}}",
        ['"select * from "', '"users"', "where", "if id > 0", '" id>"', "id", "end", "end"],
        [
            'generateSQL.WriteString("select * from users ")',
            "var whereSQL0 strings.Builder",
            "if id > 0 {",
            "params = append(params,id)",
            'whereSQL0.WriteString("id>? ")',
            "}",
            "helper.JoinWhereBuilder(&generateSQL,whereSQL0)",
        ],
    ),
    (
        'update @@table {{set}}{{if name != ""}}name=@name{{end}},{{if id>0}}id=@id{{end}}{{end}} where id=@id',
        [
            '"update "', '"users"', "set", 'if name != ""', '"name="', "name", "end",
            '","', "if id>0", '"id="', "id", "end", "end", '" where id="', "id",
        ],
        [
            'generateSQL.WriteString("update users ")',
            "var setSQL0 strings.Builder",
            'if name != "" {',
            "params = append(params,name)",
            'setSQL0.WriteString("name=? ")',
            "}",
            'setSQL0.WriteString(", ")',
            "if id>0 {",
            "params = append(params,id)",
            'setSQL0.WriteString("id=? ")',
            "}",
            "helper.JoinSetBuilder(&generateSQL,setSQL0)",
            "params = append(params,id)",
            'generateSQL.WriteString("where id=? ")',
        ],
    ),
    (
        "select * from @@table {{where}} {{for _, name := range names}}name=@name{{end}}{{end}}",
        [
            '"select * from "', '"users"', "where", "for _, name := range names",
            '"name="', "name", "end", "end",
        ],
        [
            'generateSQL.WriteString("select * from users ")',
            "var whereSQL0 strings.Builder",
            "for _, name := range names{",
            "params = append(params,name)",
            'whereSQL0.WriteString("name=? ")',
            "}",
            "helper.JoinWhereBuilder(&generateSQL,whereSQL0)",
        ],
    ),
]


@pytest.mark.parametrize("sql, split_result, generate_result", CLAUSE_CASES)
def test_clause(sql, split_result, generate_result):
    method = make_method()
    method.sql_string = sql
    method.split_sql()
    assert [part.value for part in method.section.members] == split_result
    method.section.build_sql()
    assert method.section.tmpls == generate_result


def test_split_sql_sets_for_params_on_data():
    method = make_method()
    method.sql_string = "select * from t where id=@id"
    method.split_sql()
    assert method.has_for_params is True
    assert method.has_sql_data() is True


@pytest.mark.parametrize("sql", ['select "abc', "select {{where", "select @"])
def test_split_sql_incomplete(sql):
    method = make_method()
    method.sql_string = sql
    with pytest.raises(ValueError, match="incomplete SQL"):
        method.split_sql()


def test_split_sql_unknown_template():
    method = make_method()
    method.sql_string = "select {{foo}} x"
    with pytest.raises(ValueError, match="dynamic template foo err:unknown syntax: foo"):
        method.split_sql()


def test_escaped_at_is_literal():
    method = make_method()
    method.sql_string = "select \\@x"
    method.split_sql()
    assert [part.value for part in method.section.members] == ['"select @x"']


def test_check_sql_sql_wrapper_without_result_is_exec():
    method = make_method()
    method.doc = "sql(select * from @@table where id=@id)"
    method.check_sql()
    assert method.gorm_option == "Exec"
    assert method.sql_string == "select * from @@table where id=@id"


def test_check_sql_where_wrapper_strips_quotes():
    method = make_method()
    method.doc = 'where("id=@id")'
    method.check_sql()
    assert method.gorm_option == "Where"
    assert method.sql_string == "id=@id"


def test_check_sql_raw_with_result_and_blank_line_doc():
    method = make_method()
    method.method_name = "FindByID"
    method.result_data = Param(name="result", type="User", package="model")
    method.doc = "FindByID query users\n\nselect * from @@table"
    method.check_sql()
    assert method.gorm_option == "Raw"
    assert method.sql_string == "select * from @@table"


def test_check_sql_wraps_error():
    method = make_method()
    method.interface_name = "Querier"
    method.method_name = "Bad"
    method.doc = 'select "x'
    with pytest.raises(ValueError, match="interface Querier member method Bad check sql err"):
        method.check_sql()


def test_check_result_names_error_and_data():
    method = InterfaceMethod(origin_struct=Param(type="User", package="model"))
    method.check_result([Param(type="error"), Param(package="gen", type="T")])
    assert method.result[0].name == "err"
    assert method.result[1].tmpl_string() == "result model.User"
    assert method.result_data.type == "User"
    assert method.return_error() is True
    assert method.return_nothing() is False


def test_check_result_rows_affected():
    method = InterfaceMethod()
    method.check_result([Param(package="gen", type="RowsAffected")])
    assert method.result[0].tmpl_string() == "rowsAffected int64"
    assert method.gorm_option == "Exec"
    assert method.return_rows_affected() is True


def test_check_result_sql_rows():
    method = InterfaceMethod()
    method.check_result([Param(package="gen", type="SQLRows")])
    assert method.result[0].tmpl_string() == "rows *sql.Rows"
    assert method.gorm_option == "Raw"
    assert method.return_sql_rows() is True


@pytest.mark.parametrize(
    "results, message",
    [
        ([Param(type="error"), Param(type="error")], "more than 1 error"),
        ([Param(type="int"), Param(type="string")], "more than 1 data"),
        ([Param(type="interface{}")], "can not return interface"),
        ([Param(package="main", type="X")], "main package"),
    ],
)
def test_check_result_errors(results, message):
    method = InterfaceMethod(interface_name="Q", method_name="M")
    with pytest.raises(ValueError, match=message):
        method.check_result(results)


def test_check_params_resolves_placeholders():
    method = InterfaceMethod(package="dal", origin_struct=Param(type="User", package="model"))
    method.check_params([
        Param(name="a", type="Foo", package="UNDEFINED"),
        Param(name="m", type="M", package="gen"),
        Param(name="t", type="T", package="gen"),
    ])
    assert method.get_param_in_tmpl() == "a dal.Foo,m map[string]interface{},t model.User"


def test_check_params_rejects_error():
    method = InterfaceMethod(interface_name="Q")
    with pytest.raises(ValueError, match="type error on interface"):
        method.check_params([Param(name="e", type="error")])


def test_check_method_rejects_keyword_and_field():
    meta = SimpleNamespace(fields=[Field(name="Age")], model_struct_name="User")
    with pytest.raises(ValueError, match="keyword"):
        InterfaceMethod(method_name="Find").check_method([], meta)
    with pytest.raises(ValueError, match="same name with struct field"):
        InterfaceMethod(method_name="Age").check_method([], meta)


def test_check_method_rejects_repeat_from_other_interface():
    meta = SimpleNamespace(fields=[], model_struct_name="User")
    first = InterfaceMethod(method_name="Get", interface_name="A", target_struct="user")
    second = InterfaceMethod(method_name="Get", interface_name="B", target_struct="user")
    assert first.is_repeat_from_different_interface(second) is True
    with pytest.raises(ValueError, match="different interface"):
        second.check_method([first], meta)


def test_func_sign_and_doc_comment():
    method = InterfaceMethod(
        method_name="Find",
        params=[Param(name="id", type="int")],
        result=[Param(name="err", type="error")],
        doc=" line one\n line two ",
    )
    assert method.func_sign() == "Find(id int) (err error)"
    assert method.doc_comment() == "line one\n// line two"


def test_test_template_helpers():
    method = InterfaceMethod(
        method_name="Find",
        params=[
            Param(name="id", type="int"),
            Param(type="User", package="model", is_pointer=True, is_array=True),
        ],
        result=[Param(name="result"), Param(name="err", type="error")],
    )
    assert method.get_test_param_in_tmpl() == "tt.Input.Args[0].(int),tt.Input.Args[1].(*[]model.User)"
    assert method.get_test_result_param_in_tmpl() == "res1,res2"
    assert method.get_assert_in_tmpl() == (
        'assert(t, "Find", res1, tt.Expectation.Ret[0])\n'
        'assert(t, "Find", res2, tt.Expectation.Ret[1])'
    )


def test_gorm_run_method_name_and_sql_param_name():
    method = InterfaceMethod(result_data=Param(name="result", type="User", is_array=True))
    assert method.gorm_run_method_name() == "Find"
    assert InterfaceMethod().gorm_run_method_name() == "Take"
    assert method.sql_param_name("user.name") == "username"


def test_has_need_new_result_for_map():
    method = InterfaceMethod(result_data=Param(name="result", type="map[string]interface{}"))
    assert method.has_need_new_result() is True
    assert method.has_got_point() is False