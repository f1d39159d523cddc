"""Unit tests for connection schemas."""
from __future__ import annotations

import pytest

from identity_directory.core.pagination import Connection, Edge, PageInfo


@pytest.mark.unit
class TestConnection:
    def test_empty_connection(self):
        connection = Connection[str].empty()

        assert connection.edges == []
        assert connection.page_info == PageInfo()
        assert connection.page_info.start_cursor is None

    def test_build_derives_cursors(self):
        edges = [Edge[str](node="a", cursor="c1"), Edge[str](node="b", cursor="c2")]

        connection = Connection[str].build(edges, has_previous_page=True, has_next_page=False)

        assert connection.nodes == ["a", "b"]
        assert connection.page_info.start_cursor == "c1"
        assert connection.page_info.end_cursor == "c2"
        assert connection.page_info.has_previous_page is True
        assert connection.page_info.has_next_page is False

    def test_build_without_edges(self):
        connection = Connection[str].build([], has_previous_page=True, has_next_page=True)

        assert connection.page_info.start_cursor is None
        assert connection.page_info.end_cursor is None
        assert connection.page_info.has_next_page is True
