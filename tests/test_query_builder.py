import pytest

from block_connect.database.query_builder import bind_named, build_set_clause, escape_like


class TestBindNamed:
    def test_rewrites_placeholders_in_order(self):
        query, values = bind_named(
            "SELECT * FROM t WHERE a = :a AND b = :b", {"b": 2, "a": 1}
        )

        assert query == "SELECT * FROM t WHERE a = $1 AND b = $2"
        assert values == [1, 2]

    def test_repeated_name_binds_once(self):
        query, values = bind_named(
            "WHERE consumer = :id OR provider = :id", {"id": "block-1"}
        )

        assert query == "WHERE consumer = $1 OR provider = $1"
        assert values == ["block-1"]

    def test_casts_are_left_alone(self):
        query, values = bind_named(
            "SELECT :scopes::text, NOW()::date", {"scopes": "[]"}
        )

        assert query == "SELECT $1::text, NOW()::date"
        assert values == ["[]"]

    def test_missing_parameter_raises(self):
        with pytest.raises(ValueError, match="status"):
            bind_named("WHERE status = :status", {})


def test_build_set_clause():
    assert build_set_clause({"name": "x", "icon_url": None}) == (
        "name = :name, icon_url = :icon_url"
    )


class TestEscapeLike:
    def test_wildcards_are_escaped(self):
        assert escape_like("100%_done") == "100\\%\\_done"

    def test_backslash_is_escaped_first(self):
        assert escape_like("a\\%") == "a\\\\\\%"

    def test_plain_text_unchanged(self):
        assert escape_like("city events") == "city events"
