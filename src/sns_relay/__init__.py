"""Relay social media posts linked in Discord as durable attachments."""

__version__ = "0.1.0"
