# Supabase tables: practice_sessions, exercises, user_exercises, practice_session_exercises
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

practice_sessions:
- id: uuid (primary key)
- user_id: uuid (foreign key to profiles.id, not null)
- song_id: uuid (nullable, foreign key to songs.id, on delete set null)
- duration_minutes: integer (not null, > 0)
- practiced_at: timestamp (not null, default: now())
- bpm_achieved: integer (nullable)
- mood: text (nullable) - values: frustrated, neutral, good, great, on_fire
- energy_level: integer (nullable) - 1..5
- sections_worked: text[] (default: '{}')
- session_goals: text (nullable)
- goals_achieved: boolean (default: false)
- notes: text (nullable)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

exercises (catalogue, read-only for users):
- id: uuid (primary key)
- name: text (not null)
- description: text (nullable)
- category: text (not null) - e.g. technique, rhythm, scales, chords, ear_training
- difficulty: text (not null) - beginner, intermediate, advanced
- starting_bpm: integer (not null)
- target_bpm: integer (not null)

user_exercises:
- id: uuid (primary key)
- user_id: uuid (foreign key to profiles.id, not null)
- exercise_id: uuid (foreign key to exercises.id, not null)
- current_bpm: integer (not null)
- best_bpm: integer (not null)
- total_practice_minutes: integer (not null, default: 0)
- sessions_count: integer (not null, default: 0)
- last_practiced_at: timestamp (nullable)
- unique constraint on (user_id, exercise_id)

practice_session_exercises:
- id: uuid (primary key)
- practice_session_id: uuid (foreign key to practice_sessions.id, on delete cascade)
- exercise_id: uuid (foreign key to exercises.id)
- duration_minutes: integer (not null)
- bpm_achieved: integer (nullable)
"""
