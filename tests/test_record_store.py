"""Tests du stockage / Record store and template catalog tests."""

import asyncio

import pytest
from conftest import NOW, with_defect_photos
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from liftcheck.database import Base
from liftcheck.models.inspection import InspectionStatus, OperationalStatus, QuoteStatus
from liftcheck.schemas.inspection import Defect
from liftcheck.services import state_machine
from liftcheck.services.actions import AnswerItem, SaveDefectDetails, SetQuoteStatus, dispatch
from liftcheck.services.errors import RecordStoreError
from liftcheck.services.inspection_service import InspectionService
from liftcheck.services.record_store import (
    InMemoryRecordStore,
    InMemoryTemplateCatalog,
    SqlRecordStore,
    SqlTemplateCatalog,
)
from liftcheck.utils.seed_templates import DEFAULT_TEMPLATE_ID, build_default_template, seed_default_template


@pytest.fixture
async def maker(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
async def session(maker):
    async with maker() as s:
        yield s


def filled_inspection(template, asset_id="crane-1"):
    inspection = state_machine.start_inspection(template, asset_id, "tech-1", site_id="site-1", now=NOW)
    inspection = dispatch(inspection, template, AnswerItem("access", "No"))
    inspection = with_defect_photos(inspection, "rope")
    inspection = dispatch(inspection, template, SaveDefectDetails("rope", Defect(notes="kinked")))
    return dispatch(inspection, template, SetQuoteStatus("rope", QuoteStatus.QUOTE_NOW))


# --- Memoire / In-memory ---

@pytest.mark.asyncio
async def test_in_memory_catalog_versions(template):
    catalog = InMemoryTemplateCatalog()
    v1 = await catalog.publish_template(template)
    v2 = await catalog.publish_template(template.model_copy(update={"name": "Mixed v2"}))

    assert (v1.version, v2.version) == (1, 2)
    assert (await catalog.get_template("tpl-mixed")).name == "Mixed v2"
    assert (await catalog.get_template("tpl-mixed", 1)).name == "Mixed"
    assert [t.version for t in await catalog.list_templates()] == [2]


@pytest.mark.asyncio
async def test_in_memory_catalog_inactive_hidden(template):
    catalog = InMemoryTemplateCatalog([template.model_copy(update={"is_active": False})])
    assert await catalog.list_templates() == []
    assert len(await catalog.list_templates(active_only=False)) == 1


@pytest.mark.asyncio
async def test_in_memory_store_refuses_row_count_change(template):
    store = InMemoryRecordStore()
    inspection = state_machine.start_inspection(template, "crane-1", "tech-1")
    await store.save_inspection(inspection)
    with pytest.raises(RecordStoreError):
        await store.save_inspection(inspection.model_copy(update={"items": inspection.items[:-1]}))


@pytest.mark.asyncio
async def test_in_memory_find_active(template):
    store = InMemoryRecordStore()
    inspection = state_machine.start_inspection(template, "crane-1", "tech-1")
    await store.save_inspection(inspection.model_copy(update={"status": InspectionStatus.COMPLETED}))
    assert await store.find_active_for_asset("crane-1") is None


# --- SQLAlchemy ---

@pytest.mark.asyncio
async def test_sql_inspection_round_trip(session, template):
    store = SqlRecordStore(session)
    inspection = filled_inspection(template)
    await store.save_inspection(inspection)
    await session.commit()
    session.expunge_all()

    loaded = await store.load_inspection(inspection.id)
    assert loaded == inspection
    assert loaded.get_item("rope").defect.quote_status == QuoteStatus.QUOTE_NOW
    assert loaded.get_item("access").selected_value == "No"


@pytest.mark.asyncio
async def test_sql_update_keeps_rows(session, template):
    store = SqlRecordStore(session)
    inspection = filled_inspection(template)
    await store.save_inspection(inspection)

    updated = state_machine.set_status(inspection, OperationalStatus.LIMITATIONS)
    await store.save_inspection(updated)
    await session.commit()
    session.expunge_all()

    loaded = await store.load_inspection(inspection.id)
    assert loaded.crane_status == OperationalStatus.LIMITATIONS
    assert loaded.crane_status_overridden is True
    assert len(loaded.items) == len(inspection.items)

    with pytest.raises(RecordStoreError):
        await store.save_inspection(updated.model_copy(update={"items": updated.items[:2]}))


@pytest.mark.asyncio
async def test_sql_find_active_and_list(session, template):
    store = SqlRecordStore(session)
    inspection = filled_inspection(template)
    await store.save_inspection(inspection)

    assert (await store.find_active_for_asset("crane-1")).id == inspection.id
    assert await store.find_active_for_asset("crane-2") is None
    assert [i.id for i in await store.list_inspections(asset_id="crane-1")] == [inspection.id]
    assert await store.list_inspections(status=InspectionStatus.COMPLETED) == []


@pytest.mark.asyncio
async def test_sql_refuses_second_active_inspection(session, template):
    store = SqlRecordStore(session)
    first = state_machine.start_inspection(template, "crane-1", "tech-1", inspection_id="a", now=NOW)
    second = state_machine.start_inspection(template, "crane-1", "tech-2", inspection_id="b", now=NOW)
    await store.save_inspection(first)

    with pytest.raises(RecordStoreError):
        await store.save_inspection(second)

    await store.save_inspection(first.model_copy(update={"status": InspectionStatus.COMPLETED}))
    await store.save_inspection(second)
    assert (await store.find_active_for_asset("crane-1")).id == "b"


@pytest.mark.asyncio
async def test_sql_concurrent_starts_on_separate_sessions(maker, template):
    async with maker() as s:
        await SqlTemplateCatalog(s).publish_template(template)
        await s.commit()

    async with maker() as s1, maker() as s2:
        services = [InspectionService(SqlRecordStore(s), SqlTemplateCatalog(s)) for s in (s1, s2)]
        results = await asyncio.gather(*(svc.start("tpl-mixed", "crane-1", "tech-1") for svc in services))

    assert sorted(created for _, created in results) == [False, True]
    assert results[0][0].id == results[1][0].id
    async with maker() as s:
        assert len(await SqlRecordStore(s).list_inspections(asset_id="crane-1")) == 1


@pytest.mark.asyncio
async def test_sql_quote_candidates_past_one_page(session, template):
    store = SqlRecordStore(session)
    for n in range(205):
        await store.save_inspection(filled_inspection(template, asset_id=f"crane-{n}"))

    candidates = await InspectionService(store, InMemoryTemplateCatalog()).quote_candidates()
    assert len(candidates) == 205
    assert {c.template_item_id for c in candidates} == {"rope"}
    assert candidates[0].defect.notes == "kinked"
    assert [c.asset_id for c in await store.list_quote_candidates("crane-204")] == ["crane-204"]

    assert len(await store.list_inspections()) == 205
    assert len(await store.list_inspections(offset=200, limit=50)) == 5


@pytest.mark.asyncio
async def test_sql_quote_later_drops_candidate(session, template):
    store = SqlRecordStore(session)
    inspection = filled_inspection(template)
    await store.save_inspection(inspection)
    assert len(await store.list_quote_candidates()) == 1

    await store.save_inspection(dispatch(inspection, template, SetQuoteStatus("rope", QuoteStatus.QUOTE_LATER)))
    assert await store.list_quote_candidates() == []


@pytest.mark.asyncio
async def test_sql_catalog_versions(session, template):
    catalog = SqlTemplateCatalog(session)
    await catalog.publish_template(template)
    await catalog.publish_template(template.model_copy(update={"name": "Mixed v2"}))
    await session.commit()

    latest = await catalog.get_template("tpl-mixed")
    assert (latest.version, latest.name) == (2, "Mixed v2")
    first = await catalog.get_template("tpl-mixed", 1)
    assert first.sections == template.sections
    assert [(t.id, t.version) for t in await catalog.list_templates()] == [("tpl-mixed", 2)]


@pytest.mark.asyncio
async def test_seed_default_template_once():
    catalog = InMemoryTemplateCatalog()
    await seed_default_template(catalog)
    await seed_default_template(catalog)

    templates = await catalog.list_templates()
    assert [(t.id, t.version) for t in templates] == [(DEFAULT_TEMPLATE_ID, 1)]
    assert sum(1 for _ in build_default_template().iter_items()) == 34
