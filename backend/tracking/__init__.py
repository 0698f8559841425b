"""
Daily macro tracking.

Responsibilities:
- Hold user profiles (macro targets), dietary preferences and meal logs.
- Compute what is left of a user's macro budget for a given day.
- Supply the recommendation engine with remaining macros and preferences.
"""
