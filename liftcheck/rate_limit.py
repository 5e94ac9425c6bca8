"""Rate limiting global / Global rate limiter.

Utilise slowapi pour limiter les requetes par IP (upload photos).
Uses slowapi to limit requests per client IP (photo uploads).
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address)
