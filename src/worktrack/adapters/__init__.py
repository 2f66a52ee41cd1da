"""Adapters: external integrations for worktrack.

Contains:
- repositories.py  — SQLAlchemy repositories for the primary DB
- auth_client.py   — auth service REST API client
- scheduler.py     — ImportScheduler holding the tracker query import plan
"""

__all__: list[str] = []
