# Supabase table: notification_schedules
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in scheduler.py and sweep.py

"""
Expected Supabase table structure:

notification_schedules:
- id: uuid (primary key)
- event_id: uuid (foreign key to events.id, on delete cascade)
- scheduled_at: timestamptz (not null)
- type: text (not null) - values: reminder_2h, reminder_30m, bell
- sent_at: timestamptz (nullable) - null means pending
- created_at: timestamptz (default: now())

Rows are bulk-inserted when an event is created or its bell time changes,
and marked sent by the periodic sweep. Pending rows are deleted and
regenerated on edit; sent rows are kept as history.
"""
