# Supabase tables: bands, band_members, band_invitations
# Actual operations are handled via Supabase SDK in service.py

"""
bands:
- id: uuid (primary key)
- name: text (not null)
- description: text (nullable)
- avatar_url: text (nullable)
- owner_id: uuid (foreign key to profiles.id, not null)
- created_at: timestamp (default: now())

band_members:
- id: uuid (primary key)
- band_id: uuid (foreign key to bands.id, on delete cascade)
- user_id: uuid (foreign key to profiles.id)
- role: text (owner | member)
- joined_at: timestamp (default: now())
- unique (band_id, user_id)

band_invitations:
- id: uuid (primary key)
- band_id: uuid (foreign key to bands.id, on delete cascade)
- inviter_id: uuid (foreign key to profiles.id)
- invitee_id: uuid (foreign key to profiles.id)
- status: text (pending | accepted | declined)
- created_at: timestamp (default: now())
"""
