# Supabase tables: setlists, setlist_items
# Position maintenance runs in database functions called through rpc()

"""
setlists:
- id: uuid (primary key)
- user_id: uuid (foreign key to profiles.id, creator)
- band_id: uuid (foreign key to bands.id, nullable)
- is_personal: boolean (true when band_id is null)
- name: text (not null)
- description: text (nullable)
- concert_date: date (nullable)
- venue: text (nullable)
- created_at: timestamp (default: now())

setlist_items:
- id: uuid (primary key)
- setlist_id: uuid (foreign key to setlists.id, on delete cascade)
- position: integer (1-based)
- item_type: text (song | section)
- song_id: uuid (nullable, foreign key to songs.id)
- song_title / song_artist / song_cover_url: text (snapshot of the song)
- song_owner_id: uuid (nullable, foreign key to profiles.id)
- section_name: text (nullable)
- notes: text (nullable)
- duration_seconds: integer (nullable)
- transition_seconds: integer (default: 0)

RPC:
- shift_setlist_items(p_setlist_id, p_from_position, p_shift_amount)
- reorder_setlist_items(p_setlist_id)
- move_setlist_item(p_setlist_id, p_item_id, p_old_position, p_new_position)
"""
