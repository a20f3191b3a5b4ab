# daogen

`daogen` holds the building blocks that a data-access code generator needs.
It describes models and their query structs, maps database column types to
field types, and checks dynamic SQL templates. It also splits those templates
into the statements of a generated method body.

## Modules

- **`daogen.model`**: `Field`, `Tag`, `GormTag`, keyword sets (`KeyWord`,
  `GORM_KEYWORDS`, `DO_KEYWORDS`, `GEN_KEYWORDS`) and the SQL part kinds
  (`Status`). It also has field and method options (`ModifyFieldOpt`,
  `FilterFieldOpt`, `CreateFieldOpt`, `AddMethodOpt`, `sort_options`), index
  grouping (`Index`, `group_by_column`), `map_data_type` and `SQLBuffer`.
- **`daogen.config`**: `Config` fills in defaults (`preprocess`) and works out
  table, struct and file names (`get_names`). `Column` wraps a `ColumnType`,
  which holds what a database reports about a column. `Column.to_field` turns
  a column into a `Field` with JSON and ORM tags. `DEFAULT_DATA_TYPE_MAP`
  gives PostgreSQL-oriented type mappings.
- **`daogen.parser`**: method signatures. This covers `Param`, `Method`,
  `InterfaceInfo`, `default_method_table_name` and `fix_param_package_path`.
- **`daogen.section`**: `Section` with `check_template`, `check_sql_var` and
  `build_sql`, and the clause types `SQLClause`, `IfClause`, `ElseClause`,
  `WhereClause`, `SetClause`, `TrimClause` and `ForClause`.
- **`daogen.interface`**: `InterfaceMethod`. It checks a declared method's
  name, parameters and results. It takes the SQL from the method's doc comment
  (`check_sql`) and splits it into sections (`split_sql`). It also renders
  signature and test-case snippets.
- **`daogen.query`**: `QueryStructMeta` and `build_diy_method`, which checks
  every interface method that applies to a model and builds its SQL. The
  module also has `field_wrapper_for_db_type`, `check_struct_name`,
  `filter_field`, `modify_field` and `get_struct_names`.
- **`daogen.security`**: `check_clause` and `check_conds` raise
  `ClauseCheckError` for clause objects that are banned or malformed:
  `OnConflict` with `Expr` assignments, bad `Locking` or `Insert` modifiers,
  and named clauses such as `WHERE` or `SELECT`.
- **`daogen.pools`**: `new_pool(size)` returns a `Pool` of tokens. It has
  `wait`, `done`, `num`, `size`, `wait_all` and `async_wait_all`, and it can
  be used as a context manager. A negative size disables the limit.
- **`daogen.utils`**: name helpers such as `uncapitalize`, `get_package_name`
  and `is_end`.

## Install

```
pip install .
```

## Example: splitting a dynamic SQL template

A template is made of these pieces:

- `@name` binds a parameter.
- `@@table` inserts the table name.
- `{{where}}`, `{{set}}`, `{{if ...}}`, `{{else}}`, `{{for ...}}` and
  `{{trim}}` open a block. `{{end}}` closes it.

```python
from daogen.interface import InterfaceMethod
from daogen.parser import Param

method = InterfaceMethod(
    table="users",
    params=[Param(name="id", type="int")],
)
method.sql_string = "select * from @@table {{where}} id>@id{{end}}"
method.split_sql()
method.section.build_sql()
print("\n".join(method.section.tmpls))
```

This prints the lines of the generated method body:

```
generateSQL.WriteString("select * from users ")
var whereSQL0 strings.Builder
params = append(params,id)
whereSQL0.WriteString("id>? ")
helper.JoinWhereBuilder(&generateSQL,whereSQL0)
```

Malformed templates raise `ValueError`. Examples are an unterminated quote,
an unknown `{{...}}` keyword, or a `for` with the wrong syntax.

## Example: checking clauses

```python
from daogen.security import Locking, check_clause, ClauseCheckError

check_clause(Locking(strength="update"))  # accepted
try:
    check_clause(Locking(strength="exclusive"))
except ClauseCheckError as exc:
    print(exc)
```

## What it does not do

`daogen` is a library of parts. It has no command-line tool. It does not
connect to a database or read table schemas itself: you supply column
metadata as `ColumnType` values. It does not read source files to discover
interfaces or methods: you build `InterfaceInfo` and `Method` objects
yourself. It does not render or write generated code files. It produces the
descriptions and statement lines that such a step would use.

## Tests

```
pip install .[test]
pytest
```