"""Chat API routes."""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from careerai.database import get_db
from careerai.dependencies import get_current_user_id, get_gateway, get_gateway_source
from careerai.schemas.chat import ChatSubmit, ChatReply, ChatTurnResponse
from careerai.services.chat_orchestrator import GatewaySource, get_history, submit_turn, retry_reply
from careerai.services.llm_gateway import BaseCompletionGateway

router = APIRouter(prefix="/api/chat", tags=["chat"])


@router.get("", response_model=list[ChatTurnResponse])
async def get_chat_history(
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Full conversation, oldest first. A new user gets the greeting turn."""
    return await get_history(db, user_id)


@router.post("", response_model=ChatReply)
async def send_message(
    body: ChatSubmit,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    gateway: GatewaySource = Depends(get_gateway_source),
):
    """Store the user's message with its attachments and return the assistant reply."""
    return await submit_turn(
        db, gateway, user_id, body.message,
        attachments=[a.model_dump() for a in body.attachments],
    )


@router.post("/retry", response_model=ChatReply)
async def retry_message(
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    gateway: BaseCompletionGateway = Depends(get_gateway),
):
    """Answer the latest user message left unanswered by a failed completion."""
    return await retry_reply(db, gateway, user_id)
