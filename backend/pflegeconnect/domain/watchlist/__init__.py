"""Watchlist domain exports."""

from .models import WatchlistEntry  # noqa: F401
from .service import WatchlistService  # noqa: F401
