"""
Application Queries

Query objects and their handlers for read operations.
"""

from sayu_player.application.queries.get_queue import GetQueueHandler, GetQueueQuery, QueueInfo

__all__ = [
    "GetQueueQuery",
    "GetQueueHandler",
    "QueueInfo",
]
