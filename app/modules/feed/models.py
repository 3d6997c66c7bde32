# Supabase table: activities
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

activities:
- id: uuid (primary key)
- user_id: uuid (foreign key to profiles.id, not null) - author
- type: text (not null) - song_added, song_mastered, cover_posted, friend_added,
  song_wishlisted, setlist_created, band_created, band_joined,
  challenge_accepted, challenge_won
- reference_id: uuid (nullable) - song, cover, profile, setlist, band or challenge id
- metadata: jsonb (default: '{}') - denormalised titles/names for display
- created_at: timestamp (default: now())

RLS: a user may read their own and their accepted friends' activities.
"""
