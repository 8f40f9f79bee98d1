"""Conversation context for the next completion call.

Loads the recent turn window and the user's full upload inventory, and renders
both as prompt-ready text.
"""
from dataclasses import dataclass, field
from typing import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from careerai.models.chat import ChatTurn, Attachment
from careerai.services.file_storage import to_storage_relative


@dataclass
class ConversationContext:
    turns: list[ChatTurn] = field(default_factory=list)  # oldest first
    all_files: list[Attachment] = field(default_factory=list)  # newest first

    @property
    def is_empty(self) -> bool:
        return not self.turns


async def load_recent_turns(db: AsyncSession, user_id: int, window: int) -> list[ChatTurn]:
    """Most recent `window` turns of the user, returned oldest first."""
    result = await db.execute(
        select(ChatTurn)
        .where(ChatTurn.user_id == user_id)
        .options(selectinload(ChatTurn.attachments))
        .order_by(ChatTurn.id.desc())
        .limit(window)
    )
    turns = list(result.scalars().all())
    turns.reverse()
    return turns


async def load_user_files(db: AsyncSession, user_id: int) -> list[Attachment]:
    """Every attachment the user ever uploaded, newest first."""
    result = await db.execute(
        select(Attachment)
        .join(ChatTurn, Attachment.chat_turn_id == ChatTurn.id)
        .where(ChatTurn.user_id == user_id)
        .order_by(Attachment.id.desc())
    )
    return list(result.scalars().all())


async def assemble_context(db: AsyncSession, user_id: int, window: int) -> ConversationContext:
    turns = await load_recent_turns(db, user_id, window)
    files = await load_user_files(db, user_id) if turns else []
    return ConversationContext(turns=turns, all_files=files)


def render_history(turns: Sequence[ChatTurn]) -> str:
    lines = []
    for turn in turns:
        line = f"{turn.role}: {turn.text}"
        if turn.attachments:
            names = ", ".join(a.original_name for a in turn.attachments)
            line += f" [Files: {names}]"
        lines.append(line)
    return "\n".join(lines)


def render_file_context(current: Sequence[Attachment], all_files: Sequence[Attachment]) -> str:
    """File inventory block, or "" when the user has no files at all.

    Earlier uploads that match a current upload by stored name (or by original
    name, for re-uploads of the same document) are listed only once, as current.
    """
    current_stored = {a.stored_name for a in current}
    current_original = {a.original_name for a in current}
    previous = [
        a for a in all_files
        if a.stored_name not in current_stored and a.original_name not in current_original
    ]

    sections = []
    if current:
        lines = ["The user has uploaded the following files with their current message:"]
        for i, a in enumerate(current, start=1):
            lines.append(f"   - File {i}: {a.original_name} ({a.kind}, {a.size_bytes / 1024:.2f} KB)")
        sections.append("\n".join(lines))

    if previous:
        lines = ["Previously uploaded files in this conversation that you can reference:"]
        for a in previous:
            lines.append(f"   - {a.original_name} ({a.kind}, uploaded earlier)")
        lines.append(
            "Note: The user may ask questions about any of these previously uploaded files. "
            "Please reference them when relevant."
        )
        sections.append("\n".join(lines))

    if not sections:
        return ""
    sections.append(
        "Please acknowledge any files mentioned and offer to help analyze or review them "
        "if relevant to career guidance."
    )
    return "\n\n".join(sections)


def gateway_file_refs(all_files: Sequence[Attachment]) -> list[dict]:
    """Attachment references for the completion gateway, relative to the storage root."""
    return [
        {"name": a.original_name, "path": to_storage_relative(a.storage_path)}
        for a in all_files
    ]
