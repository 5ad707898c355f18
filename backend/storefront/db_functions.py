# Overview: SQL functions the catalog queries rely on, per database dialect.

"""
fold_case(col): Unicode-aware lower-casing for substring search.

SQLite's built-in lower() only folds ASCII, so "ÉCLAIR" would never match a
query lower-cased in Python. On SQLite every new DBAPI connection gets a
unicode_lower() function backed by str.lower; other dialects use lower().
"""
from __future__ import annotations

import sqlite3

from sqlalchemy import String, event
from sqlalchemy.engine import Engine
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.sql.functions import GenericFunction

SQLITE_LOWER_FUNCTION = "unicode_lower"


def unicode_lower(value):
    if isinstance(value, str):
        return value.lower()
    return value


@event.listens_for(Engine, "connect")
def _register_sqlite_functions(dbapi_connection, connection_record):
    if isinstance(dbapi_connection, sqlite3.Connection):
        dbapi_connection.create_function(SQLITE_LOWER_FUNCTION, 1, unicode_lower, deterministic=True)


class fold_case(GenericFunction):
    type = String()
    inherit_cache = True


@compiles(fold_case)
def _compile_fold_case(element, compiler, **kw):
    return "lower(%s)" % compiler.process(element.clauses, **kw)


@compiles(fold_case, "sqlite")
def _compile_fold_case_sqlite(element, compiler, **kw):
    return "%s(%s)" % (SQLITE_LOWER_FUNCTION, compiler.process(element.clauses, **kw))
