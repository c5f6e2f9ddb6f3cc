"""Tests for parameter normalization and the search facade."""

import asyncio
from datetime import date

import pytest

from catalog_search.config import Settings
from catalog_search.facade import SearchFacade, normalize_params

CONFIG = Settings(default_per_page=12, new_arrivals_days=30, es_index="catalog-test")


class RecordingExecutor:
    def __init__(self, response=None, error=None):
        self.calls = []
        self.response = response if response is not None else {"hits": {"total": 0, "hits": []}}
        self.error = error

    async def search(self, index, body):
        self.calls.append((index, body))
        if self.error is not None:
            raise self.error
        return self.response


def _facade(executor):
    return SearchFacade(executor, config=CONFIG, clock=lambda: date(2024, 3, 15))


@pytest.mark.parametrize("page", [None, "", "abc", 0, -3, "0"])
def test_invalid_page_falls_back_to_first(page):
    request = normalize_params({"page": page, "per_page": 10}, config=CONFIG)

    assert request.from_ == 0
    assert request.size == 10


@pytest.mark.parametrize("per_page", [None, "x", 0, -1])
def test_invalid_per_page_uses_configured_default(per_page):
    request = normalize_params({"page": "3", "per_page": per_page}, config=CONFIG)

    assert request.size == 12
    assert request.from_ == 24


def test_defaults_for_missing_fields():
    request = normalize_params({}, config=CONFIG)

    assert request.query is None
    assert request.sorting is None
    assert request.category_ids == []
    assert request.browse_mode is True
    assert request.price_min is None
    assert request.properties == {}
    assert request.available_within_days is None


def test_price_and_properties_need_search_price():
    params = {"search": {"properties": {"color": ["red"]}}}

    assert normalize_params(params, config=CONFIG).properties == {}

    params = {"search": {"price": {"min": "5", "max": "20.5"}, "properties": {"color": ["red"], "size": "M"}}}
    request = normalize_params(params, config=CONFIG)

    assert (request.price_min, request.price_max) == (5.0, 20.5)
    assert request.properties == {"color": ["red"], "size": ["M"]}


def test_unparsable_price_bound_is_dropped():
    request = normalize_params({"search": {"price": {"min": "cheap", "max": "10"}}}, config=CONFIG)

    assert request.price_min is None
    assert request.price_max == 10.0


def test_browse_mode_and_taxon_passthrough():
    request = normalize_params({"browse_mode": "false", "taxon": 7, "sorting": "price_asc"}, config=CONFIG)

    assert request.browse_mode is False
    assert request.category_ids == [7]
    assert request.sorting == "price_asc"


def test_new_category_enables_recency_window():
    request = normalize_params({"new_category": True}, config=CONFIG)

    assert request.available_within_days == 30


def test_search_sends_compiled_body_and_returns_response_unchanged():
    response = {"took": 3, "hits": {"total": 1, "hits": [{"_source": {"id": 1}}]}}
    executor = RecordingExecutor(response)

    result = asyncio.run(_facade(executor).search({"keywords": "shoes", "page": 2, "per_page": 5}))

    assert result is response
    index, body = executor.calls[0]
    assert index == "catalog-test"
    assert body["from"] == 5
    assert body["size"] == 5
    assert body["query"]["filtered"]["query"]["multi_match"]["query"] == "shoes"
    assert body["query"]["filtered"]["filter"]["and"][-1] == {"range": {"available_on": {"lte": "2024-03-15"}}}


def test_search_propagates_executor_errors():
    executor = RecordingExecutor(error=ConnectionError("cluster down"))

    with pytest.raises(ConnectionError):
        asyncio.run(_facade(executor).search({}))
    assert len(executor.calls) == 1


def test_suggest_uses_configured_size():
    executor = RecordingExecutor({"suggest": {}})

    asyncio.run(_facade(executor).suggest("red"))

    _, body = executor.calls[0]
    assert body["suggest"]["name_suggest"]["completion"]["size"] == CONFIG.suggest_size


def test_blank_suggest_skips_executor():
    executor = RecordingExecutor()

    assert asyncio.run(_facade(executor).suggest("  ")) == {}
    assert executor.calls == []


def test_properties_apply_when_price_bounds_are_missing():
    params = {"search": {"price": {"min": None, "max": None}, "properties": {"color": ["red"]}}}
    request = normalize_params(params, config=CONFIG)

    assert request.properties == {"color": ["red"]}
    assert request.price_min is None
    assert request.price_max is None
