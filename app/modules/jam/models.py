# Supabase tables: jam_sessions, jam_session_participants, jam_session_messages
# Live presence and broadcast go through the Supabase realtime channel, not this API

"""
jam_sessions:
- id: uuid (primary key)
- band_id: uuid (foreign key to bands.id)
- host_id: uuid (foreign key to profiles.id)
- setlist_id: uuid (nullable, foreign key to setlists.id)
- status: text (waiting | active | paused | ended)
- bpm: integer (default: 120)
- time_signature_beats: integer (default: 4)
- time_signature_value: integer (default: 4)
- is_metronome_playing: boolean (default: false)
- current_song_index: integer (nullable)
- current_song_id: uuid (nullable)
- current_song_title / current_song_artist: text (nullable)
- started_at: timestamp (nullable, first transition to active)
- ended_at: timestamp (nullable)
- created_at: timestamp (default: now())

jam_session_participants:
- id: uuid (primary key)
- session_id: uuid (foreign key to jam_sessions.id, on delete cascade)
- user_id: uuid (foreign key to profiles.id)
- is_active: boolean (default: true)
- joined_at: timestamp (default: now())
- left_at: timestamp (nullable)
- unique (session_id, user_id)

jam_session_messages:
- id: uuid (primary key)
- session_id: uuid (foreign key to jam_sessions.id, on delete cascade)
- user_id: uuid (foreign key to profiles.id)
- content: text (not null)
- created_at: timestamp (default: now())
"""
