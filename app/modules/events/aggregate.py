"""
Shapes raw rows into the nested event view both fetch paths return.
"""

from typing import Any, Dict, Iterable, List, Optional

from app.modules.events.schemas import (
    BringItemResponse, EventFullResponse, EventResponse, GuestResponse,
    MenuItemResponse, MenuSectionResponse, ScheduleBlockResponse
)


def _sort_key(row: Dict[str, Any]) -> int:
    return row.get("sort_order") or 0


def group_menu(sections: Optional[Iterable[Dict[str, Any]]], items: Optional[Iterable[Dict[str, Any]]]) -> List[MenuSectionResponse]:
    """Nest items under their section, both levels sorted by sort_order.

    Items pointing at an unknown section are dropped.
    """
    by_id: Dict[str, Dict[str, Any]] = {}
    for section in sections or []:
        by_id[section["id"]] = {**section, "menu_items": []}
    for item in items or []:
        section = by_id.get(item.get("section_id"))
        if section is not None:
            section["menu_items"].append(item)
    grouped = []
    for section in sorted(by_id.values(), key=_sort_key):
        section["menu_items"] = [MenuItemResponse(**i) for i in sorted(section["menu_items"], key=_sort_key)]
        grouped.append(MenuSectionResponse(**section))
    return grouped


def assemble_event_view(
    event: Dict[str, Any],
    sections: Optional[List[Dict[str, Any]]] = None,
    items: Optional[List[Dict[str, Any]]] = None,
    bring_items: Optional[List[Dict[str, Any]]] = None,
    schedule_blocks: Optional[List[Dict[str, Any]]] = None,
    guests: Optional[List[Dict[str, Any]]] = None,
    co_host_ids: Optional[List[str]] = None,
    host_name: Optional[str] = None,
    current_guest_id: Optional[str] = None,
) -> EventFullResponse:
    return EventFullResponse(
        event=EventResponse(**event),
        host_name=host_name,
        menu_sections=group_menu(sections, items),
        bring_items=[BringItemResponse(**b) for b in sorted(bring_items or [], key=_sort_key)],
        schedule_blocks=[ScheduleBlockResponse(**s) for s in sorted(schedule_blocks or [], key=_sort_key)],
        guests=[GuestResponse(**g) for g in guests or []],
        co_host_ids=list(co_host_ids or []),
        current_guest_id=current_guest_id,
    )
