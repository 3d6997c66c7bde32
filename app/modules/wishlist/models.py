# Supabase table: wishlist_songs
# Actual operations are handled via Supabase SDK in service.py

"""
wishlist_songs:
- id: uuid (primary key)
- user_id: uuid (foreign key to profiles.id, not null)
- title: text (not null)
- artist: text (not null)
- album: text (nullable)
- cover_url: text (nullable)
- spotify_id: text (nullable)
- preview_url: text (nullable)
- created_at: timestamp (default: now())
"""
