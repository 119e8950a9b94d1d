"""
Test suite for the API load-test project.

This package contains:
- unit/: Fast tests for the login controller, rubric, config and CI gate
- integration/: Login controller tests against a local stub API
- smoke/: Optional probes against a live target
- performance/: Locust scenarios and the threshold checker (not collected by pytest)
"""
