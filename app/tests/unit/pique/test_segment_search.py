"""Unit tests for segment filtering and sorting."""

import pytest

from infrastructure.operations.exceptions import InvalidArgumentError
from pique.segments import filter_segments, sort_segments
from tests.factories import make_segment


@pytest.fixture
def library():
    return [
        make_segment("A", title="Guitar Solo", start_time=30, end_time=60, tags=["Music"]),
        make_segment("B", title="intro", description="Opening guitar riff", end_time=5),
        make_segment("C", title="Interview", start_time=5, end_time=25, tags=["talk", "music"]),
    ]


@pytest.mark.unit
class TestFilterSegments:
    """Test suite for filter_segments()."""

    def test_blank_query_returns_everything(self, library):
        assert filter_segments(library, "  ") == library

    def test_matches_title_and_description_case_insensitively(self, library):
        result = filter_segments(library, "GUITAR")

        assert [s.id for s in result] == ["A", "B"]

    def test_matches_tags(self, library):
        assert [s.id for s in filter_segments(library, "tal")] == ["C"]

    def test_requires_every_tag(self, library):
        assert [s.id for s in filter_segments(library, tags=["music"])] == ["A", "C"]
        assert [s.id for s in filter_segments(library, tags=["music", "talk"])] == ["C"]

    def test_query_and_tags_combine(self, library):
        assert filter_segments(library, "guitar", tags=["talk"]) == []


@pytest.mark.unit
class TestSortSegments:
    """Test suite for sort_segments()."""

    def test_sort_by_title(self, library):
        assert [s.id for s in sort_segments(library, "title")] == ["A", "C", "B"]

    def test_sort_by_duration_descending(self, library):
        result = sort_segments(library, "duration", descending=True)

        assert [s.id for s in result] == ["A", "C", "B"]

    def test_sort_by_start_time(self, library):
        assert [s.id for s in sort_segments(library, "start_time")] == ["B", "C", "A"]

    def test_unknown_key(self, library):
        with pytest.raises(InvalidArgumentError, match="unknown sort key"):
            sort_segments(library, "color")
