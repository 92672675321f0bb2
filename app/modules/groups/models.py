# Supabase tables: guest_groups, guest_group_members
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

guest_groups:
- id: uuid (primary key)
- user_id: uuid (foreign key to auth.users.id) - owning host
- name: text (not null)
- created_at: timestamptz (default: now())
- updated_at: timestamptz (default: now())

guest_group_members:
- id: uuid (primary key)
- group_id: uuid (foreign key to guest_groups.id, on delete cascade)
- contact_type: text (not null) - values: email, phone
- contact_value: text (not null)
- display_name: text (nullable)
- sort_order: integer (default: 0)
- created_at: timestamptz (default: now())
"""
