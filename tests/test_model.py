import pytest

from daogen.model import (
    GEN_KEYWORDS,
    GORM_KEYWORDS,
    TAG_KEY_GORM,
    TAG_KEY_JSON,
    AddMethodOpt,
    CreateFieldOpt,
    Field,
    FilterFieldOpt,
    GormTag,
    Index,
    KeyWord,
    ModifyFieldOpt,
    SQLBuffer,
    Tag,
    group_by_column,
    map_data_type,
    sort_options,
)


def test_keyword_full_match():
    assert GORM_KEYWORDS.full_match("Find")
    assert not GORM_KEYWORDS.full_match("Finder")


def test_keyword_contain():
    assert GEN_KEYWORDS.contain("x generateSQL y")
    assert not KeyWord(("abc",)).contain("ab")


@pytest.mark.parametrize(
    "data_type, detail, expected",
    [
        ("BIGINT", "bigint", "int64"),
        ("tinyint", "tinyint(1)", "bool"),
        ("tinyint", "tinyint(4)", "int32"),
        ("datetime", "datetime", "time.Time"),
        ("unknown", "unknown", "string"),
    ],
)
def test_map_data_type(data_type, detail, expected):
    assert map_data_type(data_type, detail) == expected


@pytest.mark.parametrize(
    "typ, expected",
    [
        ("string", "String"),
        ("*int64", "Int64"),
        ("time.Time", "Time"),
        ("[]byte", "Bytes"),
        ("serializer", "Serializer"),
        ("custom.Type", "Field"),
    ],
)
def test_gen_type(typ, expected):
    assert Field(type=typ).gen_type() == expected


def test_gen_type_prefers_custom_and_relation():
    assert Field(type="string", custom_gen_type="JSONB").gen_type() == "JSONB"
    assert Field(type="x.Y", relation=object()).gen_type() == "x.Y"


def test_escape_keyword():
    f = Field(name="Find").escape_keyword()
    assert f.name == "Find" + "_"
    assert Field(name="Plain").escape_keyword().name == "Plain"


def test_sql_buffer_collapses_whitespace():
    buf = SQLBuffer()
    for ch in "a \n\t b":
        buf.write_sql(ch)
    result = buf.dump()
    assert "  " not in result
    assert result.startswith("a") and result.endswith("b")
    assert buf.dump() == ""


def test_sql_buffer_write_keeps_text():
    buf = SQLBuffer()
    buf.write("x  y")
    assert len(buf) == len("x  y")
    assert buf.dump() == "x  y"


def test_sql_buffer_leading_space():
    buf = SQLBuffer()
    buf.write_sql(" ")
    buf.write_sql(" ")
    assert buf.dump() == " "


def test_tag_build_orders_and_removes():
    tag = Tag()
    tag.set(TAG_KEY_JSON, "id")
    tag.set(TAG_KEY_GORM, "column:id")
    built = tag.build()
    assert built.index(TAG_KEY_GORM) < built.index(TAG_KEY_JSON)
    tag.remove(TAG_KEY_GORM)
    assert TAG_KEY_GORM not in tag.build()
    assert Tag().build() == ""


def test_tag_build_skips_empty_values():
    tag = Tag({"json": "", "xml": "name"})
    assert "json" not in tag.build()
    assert "name" in tag.build()


def test_gorm_tag_build():
    tag = GormTag()
    tag.set("type", "x")
    tag.set("type", "y")
    tag.set("column", "id")
    tag.append("index", "a")
    tag.append("index", "b")
    tag.set("primaryKey", "")
    parts = tag.build().split(";")
    assert parts[0] == "column:id"
    assert "type:y" in parts and "type:x" not in parts
    assert "primaryKey" in parts
    assert "index:a" in parts and "index:b" in parts
    tag.remove("index")
    assert "index:a" not in tag.build()


def test_field_tags_folds_gorm_tag():
    f = Field(name="ID", tag=Tag({TAG_KEY_JSON: "id"}))
    f.gorm_tag.set("column", "id")
    result = f.tags()
    assert "column:id" in result
    assert TAG_KEY_GORM in f.tag


def test_field_tags_keeps_explicit_gorm_tag():
    f = Field(tag={TAG_KEY_GORM: "column:other"})
    f.gorm_tag.set("column", "id")
    result = f.tags()
    assert "column:other" in result
    assert "column:id" not in result


def test_sort_options():
    modify = ModifyFieldOpt(lambda f: f)
    filt = FilterFieldOpt(lambda f: f)
    create = CreateFieldOpt(lambda f: Field(name="X"))
    method = AddMethodOpt(lambda: [])
    result = sort_options([method, create, filt, modify, object()])
    assert result == ([modify], [filt], [create], [method])


def test_options_kind():
    assert ModifyFieldOpt(lambda f: f).option_type == FilterFieldOpt(lambda f: f).option_type
    assert AddMethodOpt(lambda: []).option_type != ModifyFieldOpt(lambda f: f).option_type


def test_group_by_column():
    grouped = group_by_column([Index("idx", ["a", "b"]), None, Index("uk", ["b"], unique=True)])
    assert sorted(grouped) == ["a", "b"]
    assert grouped["a"][0].priority == 1
    assert grouped["a"][0].priority < grouped["b"][0].priority
    assert [ix.name for ix in grouped["b"]] == ["idx", "uk"]
    assert group_by_column([]) == {}