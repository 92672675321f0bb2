# Supabase table: profiles
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

profiles:
- id: uuid (primary key, foreign key to auth.users.id)
- name: text (nullable)
- email: text (nullable) - lower-cased copy of the auth e-mail, used for co-host and invite lookups
- phone: text (nullable)
- avatar_url: text (nullable)
- push_token: text (nullable) - Expo push token of the user's latest device
- created_at: timestamptz (default: now())
- updated_at: timestamptz (default: now())

Supabase RPC get_push_token_by_phone(p_normalized_phone text) returns the
push token of the profile whose digits-only phone matches.
"""
