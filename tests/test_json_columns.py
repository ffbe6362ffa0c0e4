from block_connect.database.json_columns import (
    dump_string_list,
    dump_string_set,
    load_string_list,
    load_string_set,
)


class TestDump:
    def test_set_is_sorted_and_deduplicated(self):
        assert dump_string_set({"b", "a"}) == '["a", "b"]'
        assert dump_string_set(["a", "a"]) == '["a"]'

    def test_none_dumps_empty(self):
        assert dump_string_set(None) == "[]"
        assert dump_string_list(None) == "[]"

    def test_list_keeps_order(self):
        assert dump_string_list(["user", "service"]) == '["user", "service"]'


class TestLoad:
    def test_loads_json_text(self):
        assert load_string_set('["events.read", "events.read"]') == {"events.read"}

    def test_accepts_already_decoded_lists(self):
        assert load_string_list(["a", "b"]) == ["a", "b"]

    def test_malformed_values_load_empty(self):
        assert load_string_list("not json") == []
        assert load_string_list('{"a": 1}') == []
        assert load_string_list(None) == []

    def test_non_string_items_are_dropped(self):
        assert load_string_list('["a", 1, null]') == ["a"]
