"""
Integration test package.

Tests here drive the login controller over real HTTP against the Flask
stub in :mod:`.stub_auth_api` and demonstrate:
- Retry and backoff behaviour observed from the server side
- Circuit-breaker short-circuiting of outbound calls
- Token refresh round trips
- Setup-phase health probing
"""
