"""Authentication: the session authority and its credential providers.

Two ways a request proves who it is:
1. Sign in through a provider (email/password, Google ID token) → JWT pair
2. Present the access token as a Bearer header or the session cookie

Both resolve to a SessionIdentity whose user_id scopes every document query.
"""
