"""Game domain services: registry, selections, turns, scoring, results.

This package contains the game engine that HTTP routes and socket handlers
call into, keeping transport concerns separated from core game mechanics.
Services raise ``errors.GameError`` subclasses and never commit on their
own; ``locking.game_transaction`` owns the unit of work.
"""
