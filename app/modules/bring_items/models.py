# Supabase table: bring_items
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

bring_items:
- id: uuid (primary key)
- event_id: uuid (foreign key to events.id, on delete cascade)
- name: text (not null)
- quantity: text (default: '1')
- category: text - values: drink, side, dessert, supplies, other
- is_required: boolean (default: false)
- is_claimable: boolean (default: true)
- status: text (default: 'unclaimed') - values: unclaimed, claimed, provided
- claimed_by_guest_id: uuid (nullable, foreign key to event_guests.id)
- claimed_quantity: text (nullable)
- notes: text (nullable)
- sort_order: integer (default: 0)
- created_at: timestamptz (default: now())

Status only moves forward (unclaimed -> claimed -> provided) and
claimed_by_guest_id is set exactly when status is not 'unclaimed'.
Transitions are conditional updates filtered on the expected current status.
"""
