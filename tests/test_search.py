"""Search service tests covering fuzzy matching, filters and outages."""

import pytest
from fakes import FlakyEngine, SlowEngine

from itemsync.errors import SearchUnavailableError
from itemsync.schemas import Category, ItemCreate, ItemPatch, SearchFilters, YearRange
from itemsync.search.service import SearchService
from itemsync.sync import Synchronizer


def _item(name: str, category: Category, year: int) -> ItemCreate:
    return ItemCreate(name=name, category=category, year=year)


@pytest.mark.asyncio
async def test_created_item_is_found_by_term(
    synchronizer: Synchronizer, search_service: SearchService
) -> None:
    item = await synchronizer.create(_item("Ocean Explorer", Category.SAILBOAT, 2020))

    result = await search_service.search("ocean", SearchFilters())

    assert result.total == 1
    hit = result.items[0]
    assert hit.id == item.id
    assert hit.name == "Ocean Explorer"
    assert hit.category is Category.SAILBOAT
    assert hit.year == 2020
    assert hit.score is not None and hit.score > 0
    assert hit.created_at is not None


@pytest.mark.asyncio
async def test_fuzzy_term_tolerates_one_typo(
    synchronizer: Synchronizer, search_service: SearchService
) -> None:
    exact = await synchronizer.create(_item("Ocean Explorer", Category.SAILBOAT, 2020))
    typo = await synchronizer.create(_item("Oceann Explorer", Category.YACHT, 2019))
    await synchronizer.create(_item("Completely Unrelated", Category.DINGHY, 2000))

    result = await search_service.search("ocean")

    assert result.total == 2
    assert [hit.id for hit in result.items] == [exact.id, typo.id]


@pytest.mark.asyncio
async def test_filters_alone_drive_results(
    synchronizer: Synchronizer, search_service: SearchService
) -> None:
    wanted = await synchronizer.create(_item("Ocean Explorer", Category.SAILBOAT, 2020))
    await synchronizer.create(_item("Late Sailer", Category.SAILBOAT, 2022))
    await synchronizer.create(_item("Big Motor", Category.YACHT, 2020))

    filters = SearchFilters(
        category=Category.SAILBOAT,
        year_range=YearRange(min=2019, max=2021),
    )
    result = await search_service.search(None, filters)

    assert result.total == 1
    assert result.items[0].id == wanted.id


@pytest.mark.asyncio
async def test_update_moves_item_between_year_filters(
    synchronizer: Synchronizer, search_service: SearchService
) -> None:
    item = await synchronizer.create(_item("Ocean Explorer", Category.SAILBOAT, 2020))
    await synchronizer.update(item.id, ItemPatch(year=2021))

    matched = await search_service.search(
        None, SearchFilters(category=Category.SAILBOAT, year=2021)
    )
    stale = await search_service.search(None, SearchFilters(year=2020))

    assert [hit.id for hit in matched.items] == [item.id]
    assert stale.total == 0
    assert stale.items == []


@pytest.mark.asyncio
async def test_deleted_item_leaves_results(
    synchronizer: Synchronizer, search_service: SearchService
) -> None:
    item = await synchronizer.create(_item("Ocean Explorer", Category.SAILBOAT, 2020))
    await synchronizer.delete(item.id)

    result = await search_service.search("ocean")
    assert result.total == 0


@pytest.mark.asyncio
async def test_equal_scores_are_ordered_by_name(
    synchronizer: Synchronizer, search_service: SearchService
) -> None:
    for name in ("Zephyr", "Albatross", "Mistral"):
        await synchronizer.create(_item(name, Category.SLOOP, 2001))

    result = await search_service.search("   ")

    assert [hit.name for hit in result.items] == ["Albatross", "Mistral", "Zephyr"]


@pytest.mark.asyncio
async def test_results_are_capped_at_page_size(
    synchronizer: Synchronizer, search_service: SearchService
) -> None:
    for n in range(55):
        await synchronizer.create(_item(f"Boat {n:02d}", Category.DINGHY, 1990))

    result = await search_service.search(None)

    assert result.total == 55
    assert len(result.items) == 50


@pytest.mark.asyncio
async def test_outage_is_not_an_empty_result(
    synchronizer: Synchronizer, search_service: SearchService, engine: FlakyEngine
) -> None:
    await synchronizer.create(_item("Ocean Explorer", Category.SAILBOAT, 2020))
    engine.fail_queries = True

    with pytest.raises(SearchUnavailableError):
        await search_service.search("ocean")


@pytest.mark.asyncio
async def test_query_timeout_is_unavailable() -> None:
    service = SearchService(SlowEngine(delay=1.0), timeout=0.05)

    with pytest.raises(SearchUnavailableError):
        await service.search("ocean")


@pytest.mark.asyncio
async def test_reconcile_restores_search_after_failed_writes(
    synchronizer: Synchronizer, search_service: SearchService, engine: FlakyEngine
) -> None:
    engine.fail_writes = True
    item = await synchronizer.create(_item("Ocean Explorer", Category.SAILBOAT, 2020))
    assert (await search_service.search("ocean")).total == 0

    engine.fail_writes = False
    await synchronizer.reconcile()

    result = await search_service.search("ocean")
    assert [hit.id for hit in result.items] == [item.id]
