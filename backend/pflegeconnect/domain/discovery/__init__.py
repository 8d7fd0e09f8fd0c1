"""Discovery query engine exports."""

from .models import SearchCandidate, from_listing, from_profile  # noqa: F401
from .ranking import rank  # noqa: F401
from .schemas import BoundsFilter, RadiusFilter, SearchFilter  # noqa: F401
from .service import DiscoveryService, SearchPage, matches, search  # noqa: F401
