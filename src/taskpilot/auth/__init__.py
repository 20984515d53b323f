"""
Identity capability.

- identity.py: JWTIdentityProvider (bearer tokens via python-jose) and
  StaticIdentityProvider (fixed console user)
"""
