import pytest

from src.services.behavior import (
    BehaviorCacheManager,
    QueryProcessor,
    ResultHighlighter,
    SearchEngine,
    SearchInputError,
    ValidationError,
)


async def test_search_response_shape(search_engine):
    response = await search_engine.search_records("ali", {"types": ["student"]}, limit=1)

    assert response["query"] == "ali"
    assert response["is_searching"] is True
    assert response["result_count"] == 2
    assert [r["id"] for r in response["results"]] == ["s1"]
    assert response["pagination"] == {
        "total": 2,
        "limit": 1,
        "offset": 0,
        "has_next": True,
        "has_previous": False,
        "next_offset": 1,
        "previous_offset": None,
    }


async def test_second_page(search_engine):
    response = await search_engine.search_records("ali", {"types": ["student"]}, limit=1, offset=1)

    assert [r["id"] for r in response["results"]] == ["s3"]
    assert response["pagination"]["has_next"] is False
    assert response["pagination"]["previous_offset"] == 0


@pytest.mark.parametrize("query", ["", "    "])
async def test_blank_query_skips_loading(search_engine, record_loader, query):
    response = await search_engine.search_records(query)

    assert response["results"] == []
    assert response["is_searching"] is False
    assert response["result_count"] == 0
    assert record_loader.calls == []


async def test_only_requested_collections_are_loaded(search_engine, record_loader):
    await search_engine.search_records("fight", {"types": ["incident", "misdemeanor"]})
    assert record_loader.calls == [{"incident", "misdemeanor"}]


async def test_results_are_cached(search_engine, record_loader, fake_redis):
    first = await search_engine.search_records("hostel", {"types": ["merit", "misdemeanor"]})
    second = await search_engine.search_records("hostel", {"types": ["merit", "misdemeanor"]})

    assert first == second
    assert len(record_loader.calls) == 1
    assert any(key.startswith("test:search:") for key in fake_redis.store)


async def test_no_cache_bypasses_cache(search_engine, record_loader, fake_redis):
    await search_engine.search_records("hostel", no_cache=True)
    await search_engine.search_records("hostel", no_cache=True)

    assert len(record_loader.calls) == 2
    assert fake_redis.store == {}


async def test_clearing_search_cache_forces_reload(search_engine, record_loader, cache):
    await search_engine.search_records("ali")
    assert await cache.clear_search_cache() == 1

    await search_engine.search_records("ali")
    assert len(record_loader.calls) == 2


async def test_highlighting(search_engine):
    response = await search_engine.search_records("smith", {"types": ["student"]}, highlight=True)
    assert response["results"][0]["title"] == "Alice **Smith**"


async def test_works_without_redis(record_loader):
    cache = BehaviorCacheManager(None)
    engine = SearchEngine(cache, record_loader, QueryProcessor(cache), ResultHighlighter(cache))

    response = await engine.search_records("ali", {"types": ["student"]})
    assert response["result_count"] == 2


async def test_bad_inputs_raise(search_engine):
    with pytest.raises(SearchInputError):
        await search_engine.search_records(None)
    with pytest.raises(ValidationError):
        await search_engine.search_records("ali", limit=0)
    with pytest.raises(ValidationError):
        await search_engine.search_records("ali", {"min_score": 9, "max_score": 1})
