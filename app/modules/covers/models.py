# Supabase table: covers
# Media bytes live in the "covers" storage bucket; the row keeps the public URLs

"""
covers:
- id: uuid (primary key)
- user_id: uuid (foreign key to profiles.id, not null)
- song_id: uuid (foreign key to songs.id, not null)
- media_url: text (not null)
- media_type: text (video | audio)
- thumbnail_url: text (nullable)
- duration_seconds: integer (nullable)
- file_size_bytes: bigint (nullable)
- visibility: text (private | friends | public, default: friends)
- description: text (nullable)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

Storage layout: covers/{user_id}/{song_id}/{timestamp_ms}.{ext}
"""
