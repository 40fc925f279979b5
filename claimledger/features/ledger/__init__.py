"""
Daily claim ledger.

- One claim per local calendar day
- Consecutive-day streaks with tiered rewards (10 / 50 / 150 / 500)
- Whole-snapshot persistence after every mutation, in-memory fallback on store failure
"""
