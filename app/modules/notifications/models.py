# Supabase tables: push_subscriptions, notification_logs
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

push_subscriptions:
- id: uuid (primary key)
- user_id: uuid (foreign key to profiles.id, not null)
- endpoint: text (unique, not null) - push service URL of the browser
- keys: jsonb (not null) - {p256dh, auth}
- user_agent: text (nullable)
- created_at: timestamp (default: now())

notification_logs:
- id: uuid (primary key)
- user_id: uuid (foreign key to profiles.id, not null)
- type: text (not null) - friend_request, friend_accepted, band_invitation,
  jam_session_started, challenge_created, challenge_accepted,
  challenge_completed, challenge_won
- title: text (not null)
- body: text (not null)
- data: jsonb (default: '{}')
- success: boolean (not null) - true when at least one device received it
- created_at: timestamp (default: now())
"""
