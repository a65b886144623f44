"""
client — consumer side of the auth service.

Provides:
  • ``ApiClient`` / ``TokenStore`` for talking to the backend
  • ``SessionGuard`` — loads the current user once and exposes it
  • ``ViewRouter`` — gates protected views on the session
"""
