"""
Services layer - the feedback aggregation and civic escalation engine.

DESIGN PRINCIPLE:
- Services contain business logic, NOT routes
- Services receive their storage port; they never create clients themselves
- Read-only services (ratings, badges, leaderboard) have no side effects
- Only the vote ledger and proposal lifecycle write, always through the port
"""
