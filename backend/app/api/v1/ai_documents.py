"""
AI document endpoints – tender drafts, e-mail formatting and SOP structuring.
"""
import logging

from fastapi import APIRouter, HTTPException

from app.api.deps import DB, CurrentUser, ManagerOrAdmin
from app.schemas.ai import (
    TenderRequest, TenderResponse,
    EmailFormatRequest, EmailFormatResponse,
    SopStructureRequest, SopStructureResponse,
)
from app.services.ai_client import AIServiceError, AINotConfiguredError, TemplateNotFoundError
from app.services.document_service import DocumentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ai", tags=["ai"])


def _ai_http_error(e: Exception) -> HTTPException:
    if isinstance(e, TemplateNotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, AINotConfiguredError):
        return HTTPException(status_code=503, detail=str(e))
    return HTTPException(status_code=502, detail=str(e))


@router.post("/tender", response_model=TenderResponse)
async def generate_tender(payload: TenderRequest, current_user: ManagerOrAdmin, db: DB):
    try:
        markdown, filename = await DocumentService(db).generate_tender(current_user.tenant_id, payload)
    except (TemplateNotFoundError, AIServiceError) as e:
        logger.warning("Tender generation failed for tenant %s: %s", current_user.tenant_id, e)
        raise _ai_http_error(e)
    return TenderResponse(markdown=markdown, suggested_filename=filename, provider=payload.provider)


@router.post("/format-email", response_model=EmailFormatResponse)
async def format_email(payload: EmailFormatRequest, current_user: CurrentUser, db: DB):
    generated = await DocumentService(db).format_email(
        payload.text, payload.recipient, payload.guard_name, payload.tone
    )
    return EmailFormatResponse(email=generated.text, source=generated.source)


@router.post("/sop-structure", response_model=SopStructureResponse)
async def structure_sop(payload: SopStructureRequest, current_user: ManagerOrAdmin, db: DB):
    if not payload.raw_text.strip():
        raise HTTPException(status_code=400, detail="raw_text must not be blank")
    try:
        topics = await DocumentService(db).structure_sop(payload.raw_text, payload.provider)
    except AIServiceError as e:
        logger.warning("SOP structuring failed for tenant %s: %s", current_user.tenant_id, e)
        raise _ai_http_error(e)
    return SopStructureResponse(topics=topics)
