"""Tests for page reordering."""

import asyncio

import pytest

from conftest import StubRanker, make_page, run
from scan2doc.errors import ConfigurationError, ReorderHintInvalid
from scan2doc.pipeline.stage_reorder import (
    build_descriptors,
    fallback_order,
    reorder_pages,
    validate_permutation,
)


def numbered_pages(numbers):
    return [
        make_page(f"p{i}.jpg", [{"type": "paragraph", "text": f"text {i}"}], page_number=n)
        for i, n in enumerate(numbers)
    ]


class TestValidatePermutation:
    """Tests for hint validation."""

    def test_valid(self):
        assert validate_permutation([2, 0, 1], 3) == [2, 0, 1]

    @pytest.mark.parametrize(
        "hint",
        [[0, 1], [0, 1, 2, 3], [0, 0, 1], [0, 1, 3], [-1, 0, 1], [0, 1, "2"], [0, 1, True], {"a": 1}, None],
    )
    def test_rejected(self, hint):
        with pytest.raises(ReorderHintInvalid):
            validate_permutation(hint, 3)


class TestBuildDescriptors:
    """Tests for ranking request payloads."""

    def test_excerpts(self):
        """First and last excerpts come from paragraph and heading text only."""
        page = make_page(
            "scan.jpg",
            [
                {"type": "author", "text": "By Someone"},
                {"type": "heading", "text": "Chapter Two"},
                {"type": "image_description", "text": "A photo"},
                {"type": "paragraph", "text": "x" * 150 + "END"},
                {"type": "table_crop", "text": "Table", "boundingBox": [0, 0, 10, 10]},
            ],
            page_number=4,
        )
        (descriptor,) = build_descriptors([page], excerpt_chars=100)

        assert descriptor.temp_id == 0
        assert descriptor.file_name == "scan.jpg"
        assert descriptor.detected_page_num == 4
        assert descriptor.first_sentence == "Chapter Two"
        assert descriptor.last_sentence == "x" * 97 + "END"

    def test_empty_page(self):
        """Pages without narrative text get empty excerpts."""
        (descriptor,) = build_descriptors([make_page("blank.jpg", [])])
        assert descriptor.first_sentence == ""
        assert descriptor.last_sentence == ""
        assert descriptor.detected_page_num is None


class TestFallbackOrder:
    """Tests for the page-number sort."""

    def test_unnumbered_last_and_stable(self):
        pages = numbered_pages([None, 3, 1, None, 3])
        assert [p.name for p in fallback_order(pages)] == [
            "p2.jpg",
            "p1.jpg",
            "p4.jpg",
            "p0.jpg",
            "p3.jpg",
        ]


class TestReorderPages:
    """Tests for the reordering stage."""

    def test_single_page_skips_ranker(self):
        """One page is passed through without a service call."""
        ranker = StubRanker(order=[0])
        result = run(reorder_pages(ranker, numbered_pages([5])))

        assert result.strategy == "passthrough"
        assert ranker.calls == []

    def test_hint_applied(self):
        """A valid permutation is applied as given."""
        pages = numbered_pages([1, 2, 3])
        result = run(reorder_pages(StubRanker(order=[2, 0, 1]), pages))

        assert result.strategy == "hint"
        assert [p.name for p in result.pages] == ["p2.jpg", "p0.jpg", "p1.jpg"]

    def test_ranker_receives_descriptors(self):
        ranker = StubRanker(order=[0, 1])
        run(reorder_pages(ranker, numbered_pages([1, 2])))

        (descriptors,) = ranker.calls
        assert [d.temp_id for d in descriptors] == [0, 1]

    def test_service_error_falls_back(self):
        """Pages numbered 3, 1, 2 come out as 1, 2, 3."""
        pages = numbered_pages([3, 1, 2])
        result = run(reorder_pages(StubRanker(error=RuntimeError("HTTP 503")), pages))

        assert result.strategy == "fallback"
        assert [p.page_number for p in result.pages] == [1, 2, 3]
        assert "HTTP 503" in result.reason

    @pytest.mark.parametrize("hint", [[0, 1], [0, 0, 1], None, "0,1,2"])
    def test_invalid_hint_falls_back(self, hint):
        """Short, duplicated or malformed hints are never applied."""
        pages = numbered_pages([3, 1, 2])
        result = run(reorder_pages(StubRanker(order=hint), pages))

        assert result.strategy == "fallback"
        assert [p.page_number for p in result.pages] == [1, 2, 3]

    def test_timeout_falls_back(self):
        class SlowRanker:
            async def rank(self, descriptors):
                await asyncio.sleep(5)

        result = run(reorder_pages(SlowRanker(), numbered_pages([2, 1]), timeout=0.01))

        assert result.strategy == "fallback"
        assert [p.page_number for p in result.pages] == [1, 2]

    def test_configuration_error_propagates(self):
        with pytest.raises(ConfigurationError):
            run(reorder_pages(StubRanker(error=ConfigurationError("no key")), numbered_pages([1, 2])))

    def test_does_not_mutate_input(self):
        pages = numbered_pages([2, 1])
        run(reorder_pages(StubRanker(order=[1, 0]), pages))
        assert [p.page_number for p in pages] == [2, 1]
