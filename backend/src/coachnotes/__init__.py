"""
Coach Notes Backend - private session notes for coaching practices

Encrypted coach notes with sharing controls, an append-only audit trail
and full-text search.

Version: 1.0.0
"""

__version__ = "1.0.0"
