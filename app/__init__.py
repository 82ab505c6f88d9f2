"""
Sponsorship Matchmaking Platform
Connects student event organizers with corporate sponsors.

Architecture:
- PostgreSQL: profiles, events, sponsors, matches, applications, bookmarks
- Scoring engine: deterministic event/sponsor compatibility (app.services.scoring_service)
- Match writer: the only component that creates or refreshes match rows
"""

__version__ = "1.0.0"
