"""
Meal recommendation engine.

Responsibilities:
- Score dining-hall menu items against a user's remaining macros.
- Enforce dietary restrictions and allergies as hard filters.
- Penalise items the user has eaten recently.
- Rank candidates into a short list with per-component breakdowns.
"""
