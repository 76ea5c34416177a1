"""Asyncio WebSocket client and server helpers over plain TCP or TLS, with an echo server and a demo client."""

__version__ = "0.1.0"