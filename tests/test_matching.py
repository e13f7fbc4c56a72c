"""
Tests for match discovery with and without a search point.
"""

from mood_relay.geo import GeoPoint, distance_km
from mood_relay.matching import MatchService


class TestMatchService:
    async def _seed(self, store):
        await store.upsert_user("me", "Me", "")
        await store.upsert_user("near", "Near", "")
        await store.upsert_user("far", "Far", "")
        await store.insert_submission("me", 3, 0.0, 0.0)
        await store.insert_submission("near", 3, 0.0, 0.5)
        await store.insert_submission("far", 3, 0.0, 2.0)
        await store.insert_submission("near", 1, 0.0, 0.1)

    async def test_without_search_point(self, store):
        await self._seed(store)
        service = MatchService(store)

        matches = await service.find_matches(3, "me")

        assert [m.user_id for m in matches] == ["far", "near"]

    async def test_radius_filter(self, store):
        """A row ~55 km away is kept, one ~222 km away is dropped."""
        await self._seed(store)
        service = MatchService(store, max_radius_km=100)
        point = GeoPoint(lat=0.0, lon=0.0)

        matches = await service.find_matches(3, "me", point)

        assert [m.user_id for m in matches] == ["near"]
        for match in matches:
            assert distance_km(point.lat, point.lon, match.lat, match.lon) <= 100

    async def test_search_point_away_from_requester(self, store):
        await self._seed(store)
        service = MatchService(store, max_radius_km=100)

        matches = await service.find_matches(3, "me", GeoPoint(lat=0.0, lon=2.2))

        assert [m.user_id for m in matches] == ["far"]

    async def test_wider_radius_preserves_order(self, store):
        await self._seed(store)
        service = MatchService(store, max_radius_km=5000)

        matches = await service.find_matches(3, "me", GeoPoint(lat=0.0, lon=0.0))

        assert [m.user_id for m in matches] == ["far", "near"]
        assert matches[0].created_at >= matches[1].created_at

    async def test_never_returns_requester(self, store):
        await self._seed(store)
        service = MatchService(store)

        for point in (None, GeoPoint(lat=0.0, lon=0.0)):
            matches = await service.find_matches(3, "near", point)
            assert all(m.user_id != "near" for m in matches)

    async def test_nan_coordinates_are_excluded(self, store):
        await store.upsert_user("odd", "Odd", "")
        await store.insert_submission("odd", 3, 0.0, 0.0)
        service = MatchService(store)

        matches = await service.find_matches(3, "me", GeoPoint(lat=float("nan"), lon=0.0))

        assert matches == []

    async def test_limit(self, store):
        await store.upsert_user("bob", "Bob", "")
        for _ in range(8):
            await store.insert_submission("bob", 2, 0.0, 0.0)
        service = MatchService(store, limit=5)

        matches = await service.find_matches(2, "me")
        assert len(matches) == 5
