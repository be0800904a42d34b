# shorttrack/core/rate_limit.py
"""
Rate Limiting

Der Redirect-Endpunkt wird pro Client-IP begrenzt. Der Zaehler lebt im
Limiter (slowapi / limits, Moving-Window), nicht in den Services.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from shorttrack.core.config import settings

limiter = Limiter(key_func=get_remote_address, strategy="moving-window")

RATE_LIMITS = {
    "redirect": settings.REDIRECT_RATE_LIMIT,
}
