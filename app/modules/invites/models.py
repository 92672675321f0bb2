# Supabase table: event_guests
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

event_guests:
- id: uuid (primary key)
- event_id: uuid (foreign key to events.id, on delete cascade)
- user_id: uuid (nullable, foreign key to auth.users.id) - set when the guest has an account
- guest_name: text (not null)
- guest_phone_or_email: text (not null) - lower-cased e-mail or digits-only phone
- rsvp_status: text (not null) - values: going, maybe, cant (late on legacy rows)
- wants_reminders: boolean (default: true)
- arrival_status: text (nullable) - values: not_started, on_the_way, arrived
- arrived_at: timestamptz (nullable)
- eta_minutes: integer (nullable)
- created_at: timestamptz (default: now())

Unique constraint on (event_id, guest_phone_or_email).
The invite token lives on events.invite_token and is never returned to guests.
"""
