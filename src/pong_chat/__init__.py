"""Pong chat service: direct messages, notifications and the real-time relay."""
