"""Game domain services: board state, buzzer queue, scoring and timers.

This package contains the server-authoritative game rules and is imported by
HTTP routes, keeping transport concerns separated from core game mechanics.
Every mutating operation runs inside ``lobby_transaction`` so it commits or
rolls back as one unit.
"""
