"""
Application Layer

Contains use cases, command/query handlers, and application services.
This layer orchestrates domain objects and infrastructure to fulfill use cases.

Structure:
- commands/: Write operations sent to a guild's playback engine
- queries/: Read operations (GetQueueQuery)
- services/: The per-guild playback engine and its registry
- interfaces/: Port interfaces for infrastructure adapters
"""
