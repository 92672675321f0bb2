from pydantic import BaseModel, model_validator
from typing import Optional, Any
from datetime import datetime

# Accent colour per theme slug
THEME_ACCENT = {
    "taco_night": "#E67E22",
    "potluck": "#27AE60",
    "game_night": "#8E44AD",
    "brunch": "#F39C12",
    "dinner_party": "#C79A2B",
    "birthday": "#8E44AD",
    "holiday": "#D45A4E",
}


class EventTemplateResponse(BaseModel):
    id: str
    slug: str
    name: str
    description: Optional[str] = None
    default_duration_min: Optional[int] = None
    default_bell_offset_min: Optional[int] = None
    menu_json: Optional[Any] = None
    bring_json: Optional[Any] = None
    theme_slug: Optional[str] = None
    accent_color: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @model_validator(mode="after")
    def fill_accent(self):
        if self.accent_color is None:
            self.accent_color = THEME_ACCENT.get(self.theme_slug or self.slug)
        return self
