# Supabase tables: profiles, favorite_songs, favorite_albums
# Actual operations are handled via Supabase SDK in service.py

"""
profiles:
- id: uuid (primary key, references auth.users.id)
- username: text (unique, not null)
- display_name: text (nullable)
- avatar_url: text (nullable)
- bio: text (nullable, 160 chars max)
- is_private: boolean (default: false)
- instagram_url / twitter_url / tiktok_url / facebook_url: text (nullable)
- plan: text (free | pro | band, default: free)
- stripe_customer_id: text (nullable)
- stripe_subscription_id: text (nullable)
- subscription_status: text (nullable)
- subscription_period_end: timestamp (nullable)
- spotify_access_token / spotify_refresh_token: text (nullable)
- spotify_token_expires_at: timestamp (nullable)
- spotify_user_id: text (nullable)
- spotify_connected_at: timestamp (nullable)
- created_at: timestamp (default: now())

favorite_songs:
- id: uuid (primary key)
- user_id: uuid (foreign key to profiles.id)
- song_id: uuid (foreign key to songs.id)
- position: integer (1-4)
- unique (user_id, position)

favorite_albums:
- id: uuid (primary key)
- user_id: uuid (foreign key to profiles.id)
- album_name: text (not null)
- artist_name: text (not null)
- cover_url: text (nullable)
- spotify_id: text (nullable)
- position: integer (1-4)
- unique (user_id, position)

Storage layout: avatars/{user_id}/avatar.{ext}
"""
