from supabase import Client
from app.modules.templates.schemas import EventTemplateResponse
from typing import List
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


class TemplateService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def list_templates(self) -> List[EventTemplateResponse]:
        """All event templates ordered by slug; empty when the catalogue can't be read"""
        try:
            result = self.supabase.table("event_templates")\
                .select("*")\
                .order("slug")\
                .execute()
        except Exception as e:
            logger.warning(f"Failed to list event templates: {e}")
            return []
        return [EventTemplateResponse(**t) for t in (result.data or [])]

    def get_template(self, slug: str) -> EventTemplateResponse:
        result = self.supabase.table("event_templates")\
            .select("*")\
            .eq("slug", slug)\
            .maybe_single()\
            .execute()
        if not result or not result.data:
            raise HTTPException(status_code=404, detail="Template not found")
        return EventTemplateResponse(**result.data)
