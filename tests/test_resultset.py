"""
Unit tests for the Resultset cursor and the fetch_* helpers.
"""

from types import SimpleNamespace

import pytest

import codaserver
from codaserver.core.resultset import ColumnDescriptor, CombinedRow, Resultset
from codaserver.errors import ProtocolError


class TestResultset:
    """Test cases for Resultset."""

    @pytest.fixture
    def resultset(self, people_payload):
        return Resultset.from_payload(people_payload)

    def test_shape(self, resultset):
        assert len(resultset) == 3
        assert resultset.row_count == 3
        assert resultset.column_count == 2
        assert resultset.column_names == ["ID", "NAME"]
        assert resultset.cursor == 0

    def test_next_as_map_traverses_once_in_order(self, resultset):
        rows = []
        while True:
            row = resultset.next_as_map()
            if row is None:
                break
            rows.append(row)

        assert rows == [
            {"ID": 1, "NAME": "alice"},
            {"ID": 2, "NAME": "bob"},
            {"ID": 3, "NAME": "carol"},
        ]
        assert resultset.cursor == 3
        assert resultset.next_as_map() is None
        assert resultset.cursor == 3

    def test_reset_reproduces_traversal(self, resultset):
        first = [resultset.next_as_object() for _ in range(4)]
        resultset.reset()
        second = [resultset.next_as_object() for _ in range(4)]

        assert first == second
        assert first[3] is None
        assert first[0] == SimpleNamespace(ID=1, NAME="alice")

    def test_next_as_object_attributes(self, resultset):
        row = resultset.next_as_object()

        assert row.ID == 1
        assert row.NAME == "alice"

    def test_next_as_indexed_returns_cells(self, resultset):
        assert resultset.next_as_indexed() == [1, "alice"]
        assert resultset.next_as_indexed() == [2, "bob"]

    def test_next_as_combined_keeps_views_independent(self, resultset):
        row = resultset.next_as_combined()

        assert isinstance(row, CombinedRow)
        assert row[0] == 1
        assert row[1] == "alice"
        assert row["ID"] == 1
        assert row["NAME"] == "alice"
        assert row.indexed == (1, "alice")
        assert row.mapped == {"ID": 1, "NAME": "alice"}
        assert len(row) == 2
        assert list(row) == [1, "alice"]

    def test_combined_views_do_not_alias(self, resultset):
        row = resultset.next_as_combined()
        row.mapped["ID"] = 99

        assert row[0] == 1
        resultset.reset()
        assert resultset.next_as_map() == {"ID": 1, "NAME": "alice"}

    def test_mutating_returned_row_does_not_touch_data(self, resultset):
        row = resultset.next_as_indexed()
        row[0] = 99
        resultset.reset()

        assert resultset.next_as_indexed() == [1, "alice"]

    def test_fields_at_any_position(self, resultset, people_payload):
        expected = people_payload["columns"]

        assert resultset.fields() == expected
        resultset.next_as_map()
        assert resultset.fields() == expected
        for _ in range(5):
            resultset.next_as_map()
        assert resultset.fields() == expected

    def test_empty_resultset(self):
        resultset = Resultset.from_payload({"columns": [{"column_name": "A"}], "data": []})

        assert resultset.row_count == 0
        assert resultset.next_as_indexed() is None
        assert resultset.fields() == [{"column_name": "A"}]

    def test_row_length_mismatch(self):
        with pytest.raises(ProtocolError):
            Resultset([ColumnDescriptor("A"), ColumnDescriptor("B")], [[1, 2], [3]])

    def test_row_must_be_sequence(self):
        with pytest.raises(ProtocolError):
            Resultset([ColumnDescriptor("A")], ["x"])

    def test_column_without_name(self):
        with pytest.raises(ProtocolError):
            Resultset.from_payload({"columns": [{"type": "STRING"}], "data": []})

    def test_column_metadata_is_read_only(self, resultset, people_payload):
        with pytest.raises(TypeError):
            resultset.columns[0].metadata["column_name"] = "RENAMED"

        resultset.fields()[0]["column_name"] = "RENAMED"
        people_payload["columns"][0]["column_name"] = "RENAMED"

        assert resultset.fields()[0]["column_name"] == "ID"
        assert resultset.columns[0].metadata["column_name"] == "ID"

    def test_column_descriptor_keeps_metadata(self):
        column = ColumnDescriptor.from_mapping({"column_name": "ID", "type": "INTEGER"})

        assert column.name == "ID"
        assert column.metadata["type"] == "INTEGER"
        assert ColumnDescriptor("X").to_dict() == {"column_name": "X"}


class TestFetchHelpers:
    """Test cases for the module-level fetch helpers."""

    @pytest.fixture
    def resultset(self, people_payload):
        return Resultset.from_payload(people_payload)

    @pytest.mark.parametrize("helper", [
        codaserver.fetch_object,
        codaserver.fetch_assoc,
        codaserver.fetch_row,
        codaserver.fetch_array,
        codaserver.reset_cursor,
        codaserver.fetch_fields,
    ])
    @pytest.mark.parametrize("value", [None, True, {"columns": []}, [["x"]]])
    def test_non_resultset_raises_type_error(self, helper, value):
        with pytest.raises(TypeError, match="not a resultset"):
            helper(value)

    def test_helpers_share_cursor(self, resultset):
        assert codaserver.fetch_row(resultset) == [1, "alice"]
        assert codaserver.fetch_assoc(resultset) == {"ID": 2, "NAME": "bob"}
        assert codaserver.fetch_object(resultset).NAME == "carol"
        assert codaserver.fetch_array(resultset) is None

        codaserver.reset_cursor(resultset)
        assert codaserver.fetch_array(resultset)["NAME"] == "alice"
        assert codaserver.fetch_fields(resultset)[1]["column_name"] == "NAME"
