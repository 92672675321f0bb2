# Supabase tables: events, menu_sections, menu_items, schedule_blocks, event_co_hosts
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py
# Bring items live in modules/bring_items, guests in modules/invites,
# notification rows in modules/notifications.

"""
Expected Supabase table structure:

events:
- id: uuid (primary key)
- host_user_id: uuid (foreign key to auth.users.id, not null)
- title: text (not null)
- description: text (nullable)
- start_time: timestamptz (not null)
- bell_time: timestamptz (not null) - should be <= end_time, validated on write
- end_time: timestamptz (nullable)
- timezone: text (not null, IANA name)
- address_line1, city, state, postal_code, country: text (not null, may be empty)
- location_name, address_line2, location_notes: text (nullable)
- invite_note: text (nullable)
- invite_token: text (not null) - 24 char alphanumeric, compared verbatim
- is_cancelled: boolean (default false) - events are cancelled, never hard-deleted
- is_public: boolean (default false)
- capacity: integer (nullable)
- bell_sound: text (default 'chime')
- theme_slug, accent_color, cover_image_url: text (nullable)
- created_at: timestamptz (default: now())
- updated_at: timestamptz (default: now())

menu_sections:
- id: uuid (primary key)
- event_id: uuid (foreign key to events.id, on delete cascade)
- title: text (not null)
- sort_order: integer (not null)

menu_items:
- id: uuid (primary key)
- event_id: uuid (foreign key to events.id, on delete cascade)
- section_id: uuid (foreign key to menu_sections.id, on delete cascade)
- name: text (not null)
- notes: text (nullable)
- dietary_tags: text[] (nullable)
- sort_order: integer (not null)

schedule_blocks:
- id: uuid (primary key)
- event_id: uuid (foreign key to events.id, on delete cascade)
- title: text (not null)
- time: text (nullable) - free-form, e.g. "7:30 PM"
- notes: text (nullable)
- sort_order: integer (not null)

event_co_hosts:
- id: uuid (primary key)
- event_id: uuid (foreign key to events.id, on delete cascade)
- user_id: uuid (foreign key to auth.users.id)
- created_at: timestamptz (default: now())
- unique constraint on (event_id, user_id)
"""
