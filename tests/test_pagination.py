"""Tests for page slicing."""

import pytest

from staffdesk.api.schemas import page_response
from staffdesk.logs.pagination import paginate


class TestPaginate:
    def test_empty_input(self):
        page = paginate([], 50, 1)
        assert page.items == []
        assert page.total_items == 0
        assert page.total_pages == 0
        assert page.has_next is False
        assert page.has_prev is False

    def test_last_partial_page(self):
        """120 items at 50 per page: page 3 holds the last 20."""
        records = list(range(120))
        page = paginate(records, 50, 3)
        assert page.items == list(range(100, 120))
        assert page.total_pages == 3
        assert page.has_next is False
        assert page.has_prev is True

    def test_first_page(self):
        page = paginate(list(range(120)), 50, 1)
        assert len(page.items) == 50
        assert page.has_next is True
        assert page.has_prev is False

    def test_page_past_end_is_empty(self):
        page = paginate(list(range(10)), 5, 4)
        assert page.items == []
        assert page.total_pages == 2
        assert page.has_next is False

    def test_page_zero_is_empty(self):
        assert paginate(list(range(10)), 5, 0).items == []

    def test_exact_multiple(self):
        assert paginate(list(range(100)), 50, 2).total_pages == 2

    def test_invalid_page_size(self):
        with pytest.raises(ValueError):
            paginate([1, 2, 3], 0, 1)


class TestPageResponse:
    def test_empty_has_zero_pages(self):
        response = page_response([], 0, 1, 20)
        assert response.pages == 0
        assert response.has_next is False

    def test_middle_page(self):
        response = page_response(["x"] * 20, 45, 2, 20)
        assert response.pages == 3
        assert response.has_next is True
        assert response.has_prev is True
