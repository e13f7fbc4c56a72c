"""
Match discovery for the Mood Relay service.

Matches are same-mood submissions from other users, newest first. When a
search point is given the capped result is narrowed to rows within the
configured radius. The radius filter runs in-process over at most one page of
rows; it does not scale to large submission volumes without a spatial index.
"""

from loguru import logger

from .config import DEFAULT_MATCH_LIMIT, DEFAULT_MAX_RADIUS_KM
from .geo import GeoPoint, distance_km
from .models import MatchRecord
from .store import SubmissionStore


class MatchService:
    """
    Same-mood match discovery with an optional radius filter.

    Args:
        store: Store providing the same-mood query
        max_radius_km: Radius around the search point, in kilometres
        limit: Maximum rows fetched from the store
    """

    def __init__(
        self,
        store: SubmissionStore,
        max_radius_km: float = DEFAULT_MAX_RADIUS_KM,
        limit: int = DEFAULT_MATCH_LIMIT,
    ) -> None:
        self._store = store
        self.max_radius_km = max_radius_km
        self.limit = limit

    async def find_matches(
        self,
        mood_level: int,
        requesting_user_id: str,
        search_point: GeoPoint | None = None,
    ) -> list[MatchRecord]:
        """
        Find other users' submissions sharing a mood level.

        Args:
            mood_level: Mood category to match exactly
            requesting_user_id: User whose own submissions are excluded
            search_point: Optional centre for the radius filter

        Returns:
            Match records ordered newest first
        """
        rows = await self._store.query_same_mood(
            mood_level, requesting_user_id, limit=self.limit
        )
        if search_point is None:
            return rows

        # NaN distances compare false and drop out
        matches = [
            row
            for row in rows
            if distance_km(search_point.lat, search_point.lon, row.lat, row.lon)
            <= self.max_radius_km
        ]
        logger.debug(
            "Radius filter kept {}/{} rows within {} km of ({}, {})",
            len(matches),
            len(rows),
            self.max_radius_km,
            search_point.lat,
            search_point.lon,
        )
        return matches
