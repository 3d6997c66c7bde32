# Supabase tables: challenges, challenge_progress
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

challenges:
- id: uuid (primary key)
- creator_id: uuid (foreign key to profiles.id, not null)
- challenger_id: uuid (foreign key to profiles.id, not null) - invited friend
- challenge_type: text (not null) - values: practice_time, streak, song_mastery
- duration_days: integer (not null) - 1, 3, 7, 14 or 30
- song_id: uuid (nullable, foreign key to songs.id) - song_mastery only
- song_title, song_artist, song_cover_url: text (nullable) - denormalised song info
- status: text (not null, default: 'pending') - values: pending, active, completed, declined, cancelled
- starts_at: timestamp (nullable) - set on accept
- ends_at: timestamp (nullable) - starts_at + duration_days
- winner_id: uuid (nullable) - null on a draw
- created_at: timestamp (default: now())

challenge_progress:
- id: uuid (primary key)
- challenge_id: uuid (foreign key to challenges.id, not null)
- user_id: uuid (foreign key to profiles.id, not null)
- practice_minutes: integer (default: 0)
- streak_days: integer (default: 0)
- streak_last_date: date (nullable)
- song_mastered_at: timestamp (nullable)
- unique constraint on (challenge_id, user_id)

RPC get_practice_leaderboard(p_user_id uuid, p_period text, p_limit int):
ranks the user and their friends by practice minutes over the period.
"""
