# Supabase table: event_templates
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:
- id: uuid (primary key)
- slug: text (unique, not null) - e.g. taco_night, potluck, brunch
- name: text (not null)
- description: text (nullable)
- default_duration_min: integer (nullable)
- default_bell_offset_min: integer (nullable) - minutes from start to bell
- menu_json: jsonb (nullable) - [{title, items: [{name, notes, dietary_tags}]}]
- bring_json: jsonb (nullable) - [{name, quantity, category, is_required}]
- theme_slug: text (nullable)
- created_at: timestamp (default: now())
"""
