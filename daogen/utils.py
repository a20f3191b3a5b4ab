"""Small helpers for names and SQL template scanning."""

from __future__ import annotations


def is_capitalize(s: str) -> bool:
    """Whether the name starts with an ASCII capital letter."""
    return bool(s) and "A" <= s[0] <= "Z"


def is_end(ch: str) -> bool:
    """Whether the character ends a variable name in a SQL template."""
    if "a" <= ch <= "z" or "A" <= ch <= "Z" or "0" <= ch <= "9":
        return False
    return ch not in ("-", "_", ".")


def del_pointer_sym(name: str) -> str:
    return name.lstrip("*")


def get_package_name(full_name: str) -> str:
    """The package part of a qualified type name such as *model.User."""
    return del_pointer_sym(full_name).split(".")[0]


def get_pure_name(s: str) -> str:
    """The first letter of the name, lower case, without pointer marks."""
    return del_pointer_sym(s).lower()[0]


def get_struct_name(t: str) -> str:
    """The last dotted part of a qualified type name."""
    return t.split(".")[-1]


def uncapitalize(s: str) -> str:
    return s[:1].lower() + s[1:]