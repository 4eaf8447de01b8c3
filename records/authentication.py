"""
Token authentication used by the mobile client.

Kept in its own module so that REST framework can import the class from
settings without pulling in any view code.
"""
from __future__ import annotations

from rest_framework import authentication


class TokenAuthentication(authentication.TokenAuthentication):
    """DRF token auth reading ``Authorization: Token <key>``."""

    keyword = 'Token'
