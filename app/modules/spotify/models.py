# Spotify state lives on existing tables; there is no table of its own

"""
profiles (Spotify columns, written with the service-role client):
- spotify_access_token: text (nullable)
- spotify_refresh_token: text (nullable)
- spotify_token_expires_at: timestamp (nullable)
- spotify_user_id: text (nullable)
- spotify_connected_at: timestamp (nullable)

songs (audio-features cache, refreshed after 7 days):
- spotify_id: text (nullable)
- spotify_bpm: numeric (nullable)
- spotify_key: integer (nullable, pitch class 0-11, -1 unknown)
- spotify_energy: numeric (nullable)
- spotify_audio_fetched_at: timestamp (nullable)
"""
