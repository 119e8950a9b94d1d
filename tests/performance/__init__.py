"""
Performance testing package (Locust-based).

Contains Locust user classes, setup helpers, and a CI threshold checker
that together provide load and performance regression testing for a
REST API and its login flow.

Key Concepts Demonstrated:
- Weighted task distribution to model realistic traffic
- Login with retries, exponential backoff and a shared circuit breaker
- Tagged scenarios so CI can run subsets via ``--tags``
- CSV-based threshold gates for automated pass/fail decisions
"""
