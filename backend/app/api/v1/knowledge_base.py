from fastapi import APIRouter, HTTPException
from sqlalchemy import select

from app.api.deps import DB, CurrentUser, ManagerOrAdmin
from app.models.knowledge import SystemTemplate
from app.schemas.ai import (
    TopicNode, KnowledgeSaveRequest, KnowledgeSaveResult,
    SystemTemplateUpsert, SystemTemplateOut,
)
from app.services.document_service import DocumentService

router = APIRouter(prefix="/knowledge", tags=["knowledge"])


@router.get("/topics", response_model=list[TopicNode])
async def get_topic_tree(current_user: CurrentUser, db: DB):
    return await DocumentService(db).topic_tree(current_user.tenant_id)


@router.post("/topics", response_model=KnowledgeSaveResult)
async def save_topic_tree(payload: KnowledgeSaveRequest, current_user: ManagerOrAdmin, db: DB):
    try:
        created, updated = await DocumentService(db).save_topics(
            current_user.tenant_id, payload.topics, payload.parent_id
        )
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return KnowledgeSaveResult(created=created, updated=updated)


# ── System templates ──────────────────────────────────────────────────────────

@router.get("/templates", response_model=list[SystemTemplateOut])
async def list_system_templates(current_user: ManagerOrAdmin, db: DB):
    result = await db.execute(
        select(SystemTemplate)
        .where(SystemTemplate.tenant_id == current_user.tenant_id)
        .order_by(SystemTemplate.name)
    )
    return result.scalars().all()


@router.put("/templates", response_model=SystemTemplateOut)
async def upsert_system_template(payload: SystemTemplateUpsert, current_user: ManagerOrAdmin, db: DB):
    name = payload.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="Template name must not be blank")
    result = await db.execute(
        select(SystemTemplate).where(
            SystemTemplate.tenant_id == current_user.tenant_id, SystemTemplate.name == name
        )
    )
    template = result.scalar_one_or_none()
    if template is None:
        template = SystemTemplate(tenant_id=current_user.tenant_id, name=name, content=payload.content)
        db.add(template)
    else:
        template.content = payload.content
    await db.commit()
    await db.refresh(template)
    return template
