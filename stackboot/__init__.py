"""stackboot - Docker Compose development environment bootstrapper."""

__version__ = "0.3.0"
