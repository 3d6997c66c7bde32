# Supabase Auth + profiles
# Credentials, sessions and JWTs are handled by Supabase Auth (auth.users).
# The public.profiles row is created on the first confirmed sign-in.

"""
Supabase Auth provides:
- auth.sign_up() - Register new users (username/display_name in user_metadata)
- auth.sign_in_with_password() - Authenticate users
- auth.exchange_code_for_session() - Confirm email / OAuth code flow
- auth.get_user() - Get current user from JWT token
- auth.sign_out() - Logout users

profiles (created by /auth/callback):
- id: uuid (primary key, = auth.users.id)
- username: text (unique, not null)
- display_name: text (nullable)
- plan: text (not null, default: 'free') - values: free, pro, band
"""
