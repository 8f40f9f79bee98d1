"""Chat turn orchestration.

A turn runs: load active chat template -> persist the user turn and its
attachments -> assemble context -> compose prompt -> call the completion
gateway -> persist the assistant turn.

The user turn is committed on its own before the gateway call and is never
rolled back by a gateway failure. A failed reply leaves the conversation ending
on an unanswered user turn, which retry_reply() answers without writing the
user message again. No transaction stays open across the gateway call.
"""
import asyncio
import logging
import weakref
from typing import Callable, Optional, Union

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from careerai.config import settings
from careerai.exceptions import GatewayError, NotFoundError, PersistenceError
from careerai.models.chat import ChatTurn, Attachment, ROLE_USER, ROLE_ASSISTANT
from careerai.models.prompt import PromptTemplate
from careerai.services.context_assembler import (
    assemble_context, render_history, render_file_context, gateway_file_refs,
)
from careerai.services.llm_gateway import BaseCompletionGateway
from careerai.services.prompt_composer import render_prompt
from careerai.services.prompt_templates import require_active_template

logger = logging.getLogger(__name__)

CHAT_CATEGORY = "chat"

# Serializes one user's turns within this process.
_user_locks: "weakref.WeakValueDictionary[int, asyncio.Lock]" = weakref.WeakValueDictionary()


GatewaySource = Union[BaseCompletionGateway, Callable[[], BaseCompletionGateway]]


def _resolve_gateway(source: GatewaySource) -> BaseCompletionGateway:
    if isinstance(source, BaseCompletionGateway):
        return source
    return source()


def _user_lock(user_id: int) -> asyncio.Lock:
    lock = _user_locks.get(user_id)
    if lock is None:
        lock = asyncio.Lock()
        _user_locks[user_id] = lock
    return lock


async def _commit(db: AsyncSession, what: str) -> None:
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("Failed to persist %s: %s", what, e)
        raise PersistenceError(f"Failed to persist {what}") from e


async def _has_turns(db: AsyncSession, user_id: int) -> bool:
    result = await db.execute(
        select(ChatTurn.id).where(ChatTurn.user_id == user_id).limit(1)
    )
    return result.first() is not None


async def _append_assistant_turn(db: AsyncSession, user_id: int, text: str) -> ChatTurn:
    turn = ChatTurn(user_id=user_id, role=ROLE_ASSISTANT, text=text, has_attachments=False, attachments=[])
    db.add(turn)
    await _commit(db, "assistant turn")
    return turn


async def get_history(db: AsyncSession, user_id: int, greeting: Optional[str] = None) -> list[ChatTurn]:
    """Full conversation, oldest first. A brand-new user gets one seeded greeting turn."""
    async with _user_lock(user_id):
        result = await db.execute(
            select(ChatTurn)
            .where(ChatTurn.user_id == user_id)
            .options(selectinload(ChatTurn.attachments))
            .order_by(ChatTurn.id)
        )
        turns = list(result.scalars().all())
        if turns:
            return turns

        turn = await _append_assistant_turn(db, user_id, greeting or settings.CHAT_GREETING)
        logger.info("Seeded greeting turn for user %s", user_id)
        return [turn]


async def _generate_reply(
    db: AsyncSession,
    gateway: BaseCompletionGateway,
    template: PromptTemplate,
    user_id: int,
    turn: ChatTurn,
    window: int,
) -> str:
    """Steps 3-6 for an already persisted user turn."""
    context = await assemble_context(db, user_id, window)
    # End the read transaction before the long gateway call.
    await db.commit()

    earlier = [t for t in context.turns if t.id != turn.id]
    prompt = render_prompt(
        template.body,
        history=render_history(earlier),
        latest_message=turn.text,
        file_context=render_file_context(turn.attachments, context.all_files),
    )

    try:
        reply = await gateway.complete(prompt, gateway_file_refs(context.all_files))
    except GatewayError as e:
        e.turn_id = turn.id
        logger.error("Completion failed for user %s turn %s: %s", user_id, turn.id, e)
        raise

    await _append_assistant_turn(db, user_id, reply)
    return reply


async def submit_turn(
    db: AsyncSession,
    gateway: GatewaySource,
    user_id: int,
    message: str,
    attachments: Optional[list[dict]] = None,
    window: Optional[int] = None,
    greeting: Optional[str] = None,
) -> dict:
    """Persist the user's message and reply to it.

    ``gateway`` may be a zero-argument callable; it is only resolved when the
    turn needs a completion, so a cold-start turn works without LLM credentials.
    ``attachments`` are metadata dicts from the upload endpoint (stored_name,
    original_name, storage_path, kind, size_bytes, mime_type).
    """
    attachments = attachments or []
    window = window or settings.CHAT_HISTORY_WINDOW

    async with _user_lock(user_id):
        template = await require_active_template(db, CHAT_CATEGORY)
        cold_start = not await _has_turns(db, user_id)
        # Configuration problems surface before anything is written.
        completion_gateway = None if cold_start else _resolve_gateway(gateway)

        turn = ChatTurn(
            user_id=user_id,
            role=ROLE_USER,
            text=message,
            has_attachments=bool(attachments),
            attachments=[Attachment(**a) for a in attachments],
        )
        db.add(turn)
        await _commit(db, "user turn")

        if cold_start:
            reply = greeting or settings.CHAT_GREETING
            await _append_assistant_turn(db, user_id, reply)
            logger.info("Cold start for user %s, replied with greeting", user_id)
            return {"reply": reply}

        reply = await _generate_reply(db, completion_gateway, template, user_id, turn, window)
        return {"reply": reply}


async def retry_reply(
    db: AsyncSession,
    gateway: BaseCompletionGateway,
    user_id: int,
    window: Optional[int] = None,
) -> dict:
    """Answer the latest user turn if the previous attempt left it unanswered."""
    window = window or settings.CHAT_HISTORY_WINDOW

    async with _user_lock(user_id):
        template = await require_active_template(db, CHAT_CATEGORY)
        result = await db.execute(
            select(ChatTurn)
            .where(ChatTurn.user_id == user_id)
            .options(selectinload(ChatTurn.attachments))
            .order_by(ChatTurn.id.desc())
            .limit(1)
        )
        latest = result.scalar_one_or_none()
        if latest is None or latest.role != ROLE_USER:
            raise NotFoundError("Unanswered chat turn")

        reply = await _generate_reply(db, gateway, template, user_id, latest, window)
        return {"reply": reply}
