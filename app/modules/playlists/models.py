# Supabase tables: playlists, playlist_songs
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

playlists:
- id: uuid (primary key)
- user_id: uuid (foreign key to profiles.id, not null)
- name: text (not null)
- description: text (nullable)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

playlist_songs:
- id: uuid (primary key)
- playlist_id: uuid (foreign key to playlists.id, on delete cascade)
- song_id: uuid (foreign key to songs.id, on delete cascade)
- position: integer (not null) - 0-based order in the playlist
- created_at: timestamp (default: now())
- unique constraint on (playlist_id, song_id)
"""
