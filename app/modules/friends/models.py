# Supabase table: friendships
# Actual operations are handled via Supabase SDK in service.py

"""
friendships:
- id: uuid (primary key)
- requester_id: uuid (foreign key to profiles.id, not null)
- addressee_id: uuid (foreign key to profiles.id, not null)
- status: text (pending | accepted | blocked)
- created_at: timestamp (default: now())
- unique (requester_id, addressee_id)

A pending row is a request from requester to addressee. Once accepted the
relation is undirected: either side may appear as requester.
"""
