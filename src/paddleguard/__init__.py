"""
PaddleGuard: signature verification for Paddle Billing webhooks.

Checks the ``Paddle-Signature`` header of inbound events (timestamp window
plus HMAC-SHA256 over the raw body) before they reach application handlers.
"""

__version__ = "1.0.0"
