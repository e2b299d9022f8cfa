"""Task scheduler, priority queue, ring buffer, sign-server client, Douyin helpers and web payloads."""

__version__ = "0.1.0"