"""
Locust scenario user classes.

Each module in this package defines one Locust ``HttpUser`` subclass
that models a specific traffic pattern:

- :mod:`.login_flow` — resilient login with retries and a circuit breaker
- :mod:`.user_directory` — read-only user directory checks
- :mod:`.api_tour` — REST writes/reads plus a GraphQL query

The check-driven scenarios inherit from :class:`.base.ApiUser`.
"""
