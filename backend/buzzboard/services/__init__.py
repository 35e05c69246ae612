"""Lobby, membership and game services.

Routes and socket handlers call into these modules; nothing here knows about
HTTP or Socket.IO.
"""
