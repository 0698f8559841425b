"""
Request analytics.

Responsibilities:
- Record recommendation requests and meal logs as in-process events.
- Aggregate them into admin-facing usage statistics.
"""
