"""Prompt template admin routes."""
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from careerai.database import get_db
from careerai.dependencies import get_optional_user_id
from careerai.exceptions import NotFoundError
from careerai.schemas.common import DeleteResponse
from careerai.schemas.prompt import PromptTemplateCreate, PromptTemplateUpdate, PromptTemplateResponse
from careerai.services import prompt_templates

router = APIRouter(prefix="/api/admin/prompts", tags=["prompts"])


@router.get("", response_model=list[PromptTemplateResponse])
async def list_prompts(
    category: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """List templates, newest first, optionally filtered by category."""
    return await prompt_templates.list_templates(db, category)


@router.get("/active", response_model=PromptTemplateResponse)
async def get_active_prompt(
    category: str = Query("chat"),
    db: AsyncSession = Depends(get_db),
):
    """The active template for a category."""
    template = await prompt_templates.get_active_template(db, category)
    if template is None:
        raise NotFoundError("Active prompt template for category", category)
    return template


@router.get("/{template_id}", response_model=PromptTemplateResponse)
async def get_prompt(template_id: int, db: AsyncSession = Depends(get_db)):
    return await prompt_templates.get_template(db, template_id)


@router.post("", response_model=PromptTemplateResponse, status_code=201)
async def create_prompt(
    body: PromptTemplateCreate,
    admin_id: Optional[int] = Depends(get_optional_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Create a template. Creating it active deactivates the rest of its category."""
    return await prompt_templates.create_template(
        db, body.title, body.body, category=body.category,
        is_active=body.is_active, created_by=admin_id,
    )


@router.put("/{template_id}", response_model=PromptTemplateResponse)
async def update_prompt(
    template_id: int,
    body: PromptTemplateUpdate,
    admin_id: Optional[int] = Depends(get_optional_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Update a template. Only provided fields are updated."""
    return await prompt_templates.update_template(
        db, template_id, body.model_dump(exclude_unset=True), updated_by=admin_id,
    )


@router.post("/{template_id}/activate", response_model=PromptTemplateResponse)
async def activate_prompt(
    template_id: int,
    admin_id: Optional[int] = Depends(get_optional_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Make this the only active template in its category."""
    return await prompt_templates.activate_template(db, template_id, updated_by=admin_id)


@router.delete("/{template_id}", response_model=DeleteResponse)
async def delete_prompt(template_id: int, db: AsyncSession = Depends(get_db)):
    await prompt_templates.delete_template(db, template_id)
    return {"deleted": True, "id": template_id}
