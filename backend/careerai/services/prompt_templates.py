"""Prompt template store - lookup and the one-active-per-category swap.

Activation runs deactivate-all-in-category then activate-target inside one
transaction. The partial unique index on (category WHERE is_active) rejects a
concurrent activation that would leave two winners; the loser retries against
the committed state, so the last activation wins and exactly one stays active.
"""
import logging
from typing import Optional

from sqlalchemy import delete, select, update, desc
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from careerai.exceptions import NoActivePromptError, NotFoundError, PersistenceError
from careerai.models.prompt import PromptTemplate

logger = logging.getLogger(__name__)

MAX_SWAP_ATTEMPTS = 3


async def get_active_template(db: AsyncSession, category: str = "chat") -> Optional[PromptTemplate]:
    result = await db.execute(
        select(PromptTemplate)
        .where(PromptTemplate.category == category, PromptTemplate.is_active.is_(True))
        .order_by(desc(PromptTemplate.updated_at))
        .limit(1)
    )
    return result.scalar_one_or_none()


async def require_active_template(db: AsyncSession, category: str = "chat") -> PromptTemplate:
    """Active template for the category. Never falls back to a built-in prompt."""
    template = await get_active_template(db, category)
    if template is None:
        raise NoActivePromptError(category)
    return template


async def get_template(db: AsyncSession, template_id: int) -> PromptTemplate:
    template = await db.get(PromptTemplate, template_id)
    if template is None:
        raise NotFoundError("Prompt template", template_id)
    return template


async def list_templates(db: AsyncSession, category: Optional[str] = None) -> list[PromptTemplate]:
    query = select(PromptTemplate)
    if category:
        query = query.where(PromptTemplate.category == category)
    result = await db.execute(query.order_by(desc(PromptTemplate.updated_at), desc(PromptTemplate.id)))
    return list(result.scalars().all())


async def _swap_in(db: AsyncSession, template_id: int, category: str, changes: dict) -> None:
    """Within the caller's transaction: deactivate the category, then activate the target."""
    await db.execute(
        update(PromptTemplate)
        .where(PromptTemplate.category == category, PromptTemplate.is_active.is_(True))
        .values(is_active=False)
        .execution_options(synchronize_session="fetch")
    )
    await db.execute(
        update(PromptTemplate)
        .where(PromptTemplate.id == template_id)
        .values(**changes, category=category, is_active=True)
        .execution_options(synchronize_session="fetch")
    )


async def activate_template(
    db: AsyncSession, template_id: int, updated_by: Optional[int] = None, changes: Optional[dict] = None,
) -> PromptTemplate:
    """Make the template the only active one in its (possibly new) category."""
    changes = dict(changes or {})
    for attempt in range(1, MAX_SWAP_ATTEMPTS + 1):
        template = await get_template(db, template_id)
        category = changes.pop("category", None) or template.category
        if updated_by is not None:
            changes["updated_by"] = updated_by
        try:
            await _swap_in(db, template_id, category, changes)
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            if attempt == MAX_SWAP_ATTEMPTS:
                raise PersistenceError(f"Could not activate prompt template {template_id}") from e
            logger.warning(
                "Concurrent activation in category '%s' (attempt %d/%d), retrying",
                category, attempt, MAX_SWAP_ATTEMPTS,
            )
            changes["category"] = category
            continue
        await db.refresh(template)
        logger.info("Activated prompt template %s in category '%s'", template_id, category)
        return template


async def create_template(
    db: AsyncSession, title: str, body: str, category: str = "chat",
    is_active: bool = False, created_by: Optional[int] = None,
) -> PromptTemplate:
    template = PromptTemplate(
        title=title, body=body, category=category, is_active=False, created_by=created_by,
    )
    db.add(template)
    await db.commit()
    if not is_active:
        await db.refresh(template)
        return template

    template_id = template.id
    try:
        return await activate_template(db, template_id)
    except PersistenceError:
        # A create that could not be activated leaves nothing behind.
        await db.execute(delete(PromptTemplate).where(PromptTemplate.id == template_id))
        await db.commit()
        logger.warning("Removed prompt template %s after failed activation", template_id)
        raise


async def update_template(
    db: AsyncSession, template_id: int, changes: dict, updated_by: Optional[int] = None,
) -> PromptTemplate:
    """Partial update. Setting is_active=True goes through the swap."""
    template = await get_template(db, template_id)
    changes = dict(changes)
    make_active = changes.pop("is_active", None)
    moves_active = (
        make_active is None and template.is_active
        and changes.get("category") not in (None, template.category)
    )
    if make_active or moves_active:
        return await activate_template(db, template_id, updated_by=updated_by, changes=changes)

    for key, value in changes.items():
        setattr(template, key, value)
    if make_active is False:
        template.is_active = False
    if updated_by is not None:
        template.updated_by = updated_by
    await db.commit()
    await db.refresh(template)
    return template


async def delete_template(db: AsyncSession, template_id: int) -> None:
    template = await get_template(db, template_id)
    await db.delete(template)
    await db.commit()
