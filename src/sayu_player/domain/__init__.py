# ruff: noqa: N999
"""
Domain Layer

Contains pure business logic organized by bounded contexts:
- shared/: Cross-cutting types, events and exceptions
- music/: Track, queue, and playback domain logic
"""

from sayu_player.domain.shared.exceptions import DomainError

__all__ = [
    "DomainError",
]
