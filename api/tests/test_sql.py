from __future__ import annotations

import pytest

from app.services.repository import RepositoryValidationError
from app.services.sql import QueryParams, join_predicates, sql_for_partial_update


def test_partial_update_translates_columns_and_orders_values() -> None:
    update = sql_for_partial_update({"firstName": "Aliya", "age": 32}, {"firstName": "first_name"})

    assert update.set_cols == '"first_name"=$1, "age"=$2'
    assert update.values == ["Aliya", 32]


def test_partial_update_without_column_table_uses_field_names() -> None:
    update = sql_for_partial_update({"title": "New", "salary": 10, "equity": "0.5"})

    assert update.set_cols == '"title"=$1, "salary"=$2, "equity"=$3'
    assert update.values == ["New", 10, "0.5"]


def test_partial_update_passes_nulls_through() -> None:
    update = sql_for_partial_update({"salary": None, "equity": None})

    assert update.set_cols == '"salary"=$1, "equity"=$2'
    assert update.values == [None, None]


def test_partial_update_rejects_empty_mapping() -> None:
    with pytest.raises(RepositoryValidationError, match="No data"):
        sql_for_partial_update({}, {"numEmployees": "num_employees"})


def test_partial_update_key_token_follows_last_assignment() -> None:
    fields = {f"field_{index}": index for index in range(5)}
    update = sql_for_partial_update(fields)

    key_token = update.params.bind("key")

    assert update.set_cols.split(", ") == [f'"field_{index}"=${index + 1}' for index in range(5)]
    assert key_token == "$6"
    assert update.values == [0, 1, 2, 3, 4, "key"]


def test_partial_update_continues_numbering_from_shared_params() -> None:
    params = QueryParams()
    params.bind("already-bound")

    update = sql_for_partial_update({"name": "Acme"}, params=params)

    assert update.set_cols == '"name"=$2'
    assert update.values == ["already-bound", "Acme"]


def test_query_params_hands_out_sequential_tokens() -> None:
    params = QueryParams()
    assert params.bind("a") == "$1"
    assert params.bind(None) == "$2"

    values = params.values
    values.append("not-bound")

    assert params.values == ["a", None]


def test_join_predicates_without_predicates_is_empty() -> None:
    where = join_predicates([], QueryParams())

    assert where.where_cols == ""
    assert where.values == []
