# Supabase table: songs
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

songs:
- id: uuid (primary key)
- user_id: uuid (foreign key to profiles.id, not null) - owner
- title: text (not null)
- artist: text (not null)
- album: text (nullable)
- cover_url: text (nullable)
- spotify_id: text (nullable)
- preview_url: text (nullable)
- difficulty: text (nullable) - values: beginner, intermediate, advanced, expert
- status: text (not null, default: 'want_to_learn') - values: want_to_learn, learning, mastered
- progress_percent: integer (not null, default: 0) - 0..100
- tuning: text (not null, default: 'Standard')
- capo_position: integer (not null, default: 0)
- tabs_url: text (nullable)
- notes: text (nullable)
- spotify_bpm: real (nullable) - cached audio features
- spotify_key: text (nullable)
- spotify_energy: real (nullable)
- spotify_audio_fetched_at: timestamp (nullable)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

RLS: owner has full access; band members may read each other's songs.
"""
