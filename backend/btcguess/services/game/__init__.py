"""Game domain services: resolution, the guess timer and the session.

This package contains pure(ish) domain logic that should be driven by
socket handlers, keeping transport concerns separated from core game
mechanics.
"""
