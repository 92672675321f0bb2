from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.templates.schemas import EventTemplateResponse
from app.modules.templates.service import TemplateService
from supabase import Client
from typing import List

router = APIRouter(prefix="/templates", tags=["templates"])


def get_template_service(supabase: Client = Depends(get_supabase)) -> TemplateService:
    return TemplateService(supabase)


@router.get("", response_model=List[EventTemplateResponse])
async def list_templates(service: TemplateService = Depends(get_template_service)):
    """List event templates"""
    return service.list_templates()


@router.get("/{slug}", response_model=EventTemplateResponse)
async def get_template(slug: str, service: TemplateService = Depends(get_template_service)):
    return service.get_template(slug)
