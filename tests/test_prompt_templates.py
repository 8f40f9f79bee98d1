"""Tests for the prompt template store and its one-active-per-category swap."""
import asyncio
import pytest
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from careerai.exceptions import NoActivePromptError, NotFoundError, PersistenceError
from careerai.models import Base
from careerai.models.prompt import PromptTemplate
from careerai.services import prompt_templates
from careerai.services.prompt_templates import (
    activate_template, create_template, update_template, delete_template,
    get_active_template, require_active_template, list_templates,
)
from careerai.services.seed_defaults import seed_all_defaults


async def _active_ids(session, category="chat") -> list[int]:
    result = await session.execute(
        select(PromptTemplate.id).where(
            PromptTemplate.category == category, PromptTemplate.is_active.is_(True)
        )
    )
    return list(result.scalars().all())


@pytest.mark.asyncio
async def test_activating_b_deactivates_a(session):
    a = await create_template(session, "A", "body a", is_active=True)
    b = await create_template(session, "B", "body b")

    assert await _active_ids(session) == [a.id]
    await activate_template(session, b.id)

    assert await _active_ids(session) == [b.id]
    assert (await require_active_template(session, "chat")).id == b.id


@pytest.mark.asyncio
async def test_categories_are_independent(session):
    chat = await create_template(session, "Chat", "c", category="chat", is_active=True)
    skill = await create_template(session, "Skill", "s", category="skill", is_active=True)

    assert await _active_ids(session, "chat") == [chat.id]
    assert await _active_ids(session, "skill") == [skill.id]


@pytest.mark.asyncio
async def test_database_rejects_two_active_in_one_category(session):
    session.add(PromptTemplate(title="A", body="a", category="chat", is_active=True))
    session.add(PromptTemplate(title="B", body="b", category="chat", is_active=True))

    with pytest.raises(IntegrityError):
        await session.commit()
    await session.rollback()


@pytest.mark.asyncio
async def test_activations_from_separate_sessions_leave_one_active(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'prompts.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with factory() as db:
        a = await create_template(db, "A", "a", is_active=True)
        b = await create_template(db, "B", "b")
        c = await create_template(db, "C", "c")

    async def activate_repeatedly(template_id):
        async with factory() as db:
            for _ in range(3):
                await activate_template(db, template_id)

    await asyncio.gather(*(activate_repeatedly(t.id) for t in (a, b, c)))

    async with factory() as check:
        active = await _active_ids(check)
    assert len(active) == 1
    assert active[0] in (a.id, b.id, c.id)
    await engine.dispose()


@pytest.mark.asyncio
async def test_activation_retries_after_conflict(session, monkeypatch):
    await create_template(session, "A", "a", is_active=True)
    b = await create_template(session, "B", "b")
    b_id = b.id

    real_swap = prompt_templates._swap_in
    calls = {"n": 0}

    async def flaky_swap(db, template_id, category, changes):
        calls["n"] += 1
        if calls["n"] == 1:
            raise IntegrityError("UPDATE prompt_templates", {}, Exception("duplicate active"))
        await real_swap(db, template_id, category, changes)

    monkeypatch.setattr(prompt_templates, "_swap_in", flaky_swap)
    await activate_template(session, b_id)

    assert calls["n"] == 2
    assert await _active_ids(session) == [b_id]


@pytest.mark.asyncio
async def test_activation_gives_up_after_repeated_conflicts(session, monkeypatch):
    a = await create_template(session, "A", "a", is_active=True)

    async def always_conflict(db, template_id, category, changes):
        raise IntegrityError("UPDATE prompt_templates", {}, Exception("duplicate active"))

    monkeypatch.setattr(prompt_templates, "_swap_in", always_conflict)
    with pytest.raises(PersistenceError):
        await activate_template(session, a.id)


@pytest.mark.asyncio
async def test_failed_activation_on_create_leaves_no_template(session, monkeypatch):
    async def always_conflict(db, template_id, category, changes):
        raise IntegrityError("UPDATE prompt_templates", {}, Exception("duplicate active"))

    monkeypatch.setattr(prompt_templates, "_swap_in", always_conflict)
    with pytest.raises(PersistenceError):
        await create_template(session, "A", "a", is_active=True)

    assert await list_templates(session) == []


@pytest.mark.asyncio
async def test_update_without_editor_keeps_previous_editor(session):
    template = await create_template(session, "A", "a")
    await update_template(session, template.id, {"body": "a2"}, updated_by=7)

    updated = await update_template(session, template.id, {"title": "A2"})

    assert updated.updated_by == 7
    assert updated.title == "A2"


@pytest.mark.asyncio
async def test_update_with_is_active_swaps(session):
    a = await create_template(session, "A", "a", is_active=True)
    b = await create_template(session, "B", "b")

    updated = await update_template(session, b.id, {"is_active": True, "body": "b2"}, updated_by=5)

    assert updated.is_active and updated.body == "b2" and updated.updated_by == 5
    assert await _active_ids(session) == [b.id]
    assert a.id not in await _active_ids(session)


@pytest.mark.asyncio
async def test_moving_active_template_to_new_category_replaces_its_active(session):
    old_skill = await create_template(session, "Skill", "s", category="skill", is_active=True)
    chat = await create_template(session, "Chat", "c", category="chat", is_active=True)

    await update_template(session, chat.id, {"category": "skill"})

    assert await _active_ids(session, "skill") == [chat.id]
    assert await _active_ids(session, "chat") == []
    assert old_skill.id not in await _active_ids(session, "skill")


@pytest.mark.asyncio
async def test_plain_update_and_delete(session):
    t = await create_template(session, "T", "body")
    updated = await update_template(session, t.id, {"title": "Renamed"})
    assert updated.title == "Renamed" and not updated.is_active

    await delete_template(session, t.id)
    with pytest.raises(NotFoundError):
        await prompt_templates.get_template(session, t.id)


@pytest.mark.asyncio
async def test_no_active_template_raises(session):
    await create_template(session, "Inactive", "x")

    assert await get_active_template(session, "chat") is None
    with pytest.raises(NoActivePromptError):
        await require_active_template(session, "chat")


@pytest.mark.asyncio
async def test_list_filters_by_category(session):
    await create_template(session, "C", "c", category="chat")
    await create_template(session, "S", "s", category="skill")

    assert {t.title for t in await list_templates(session)} == {"C", "S"}
    assert [t.title for t in await list_templates(session, "skill")] == ["S"]


@pytest.mark.asyncio
async def test_seed_defaults_is_idempotent(session):
    await seed_all_defaults(session)
    await seed_all_defaults(session)

    count = (await session.execute(select(func.count()).select_from(PromptTemplate))).scalar_one()
    assert count == 1
    active = await require_active_template(session, "chat")
    assert "{{history}}" in active.body and "{{latest_message}}" in active.body
