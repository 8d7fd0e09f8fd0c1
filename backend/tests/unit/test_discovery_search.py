import math
from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError as SchemaError

from pflegeconnect.domain.discovery import (
	DiscoveryService,
	SearchFilter,
	from_listing,
	from_profile,
	rank,
	search,
)
from pflegeconnect.domain.geo import EARTH_RADIUS_KM
from pflegeconnect.domain.profiles.models import (
	Availability,
	LanguageLevel,
	OrganizationAttributes,
	Profile,
	ProfileBasics,
	ProviderAttributes,
	Role,
	SubscriptionTier,
)
from pflegeconnect.domain.quota.models import Listing

BASE = datetime(2024, 5, 1, tzinfo=timezone.utc)
CENTER = (52.52, 13.405)


def _lat_north(km: float) -> float:
	return CENTER[0] + math.degrees(km / EARTH_RADIUS_KM)


def provider(
	pid: str,
	*,
	name: str = "Pflegekraft",
	city: str = "Berlin",
	score: int = 50,
	age_days: int = 0,
	lat=None,
	lon=None,
	show_name: bool = True,
	**attrs,
) -> Profile:
	return Profile(
		role=Role.PROVIDER,
		basics=ProfileBasics(
			id=pid,
			owner_id=f"user-{pid}",
			display_name=name,
			city=city,
			latitude=lat,
			longitude=lon,
			show_name=show_name,
			created_at=BASE - timedelta(days=age_days),
		),
		attributes=ProviderAttributes(care_score=score, **attrs),
	)


def organization(oid: str, *, name: str, tier=SubscriptionTier.FREE, age_days: int = 0, **attrs) -> Profile:
	return Profile(
		role=Role.ORGANIZATION,
		basics=ProfileBasics(id=oid, owner_id=f"user-{oid}", city="Hamburg", created_at=BASE - timedelta(days=age_days)),
		attributes=OrganizationAttributes(name=name, subscription_tier=tier, **attrs),
	)


def _ids(results):
	return [c.id for c in results]


def test_text_query_matches_name_and_specializations_case_insensitively():
	candidates = [
		from_profile(provider("p1", name="Anna Weber")),
		from_profile(provider("p2", name="Ben", specializations=("Intensivpflege",))),
		from_profile(provider("p3", name="Carla")),
	]
	assert _ids(search(candidates, SearchFilter(query="anna"))) == ["p1"]
	assert _ids(search(candidates, SearchFilter(query="INTENSIV"))) == ["p2"]


def test_hidden_name_is_not_searchable():
	candidates = [from_profile(provider("p1", name="Anna Weber", show_name=False))]
	assert search(candidates, SearchFilter(query="anna")) == []
	assert candidates[0].name is None


def test_city_is_a_substring_match():
	candidates = [from_profile(provider("p1", city="Berlin-Mitte")), from_profile(provider("p2", city="Potsdam"))]
	assert _ids(search(candidates, SearchFilter(city="berlin"))) == ["p1"]
	assert len(search(candidates, SearchFilter(city="all"))) == 2


def test_categorical_filters_and_together():
	candidates = [
		from_profile(provider("p1", language_level=LanguageLevel.B2, availability=Availability.FULL_TIME)),
		from_profile(provider("p2", language_level=LanguageLevel.B2, availability=Availability.WEEKENDS)),
		from_profile(provider("p3", language_level=LanguageLevel.C1, availability=Availability.FULL_TIME)),
	]
	flt = SearchFilter(language_level="b2", availability=Availability.FULL_TIME)
	assert _ids(search(candidates, flt)) == ["p1"]


def test_min_care_score_and_verified_only():
	candidates = [
		from_profile(provider("p1", score=80, is_verified=True)),
		from_profile(provider("p2", score=90)),
		from_profile(provider("p3", score=40, is_verified=True)),
	]
	assert _ids(search(candidates, SearchFilter(min_care_score=70))) == ["p2", "p1"]
	assert _ids(search(candidates, SearchFilter(min_care_score=70, verified_only=True))) == ["p1"]


def test_rate_range_and_providers_without_rate():
	candidates = [
		from_profile(provider("p1", hourly_rate=25.0)),
		from_profile(provider("p2", hourly_rate=45.0)),
		from_profile(provider("p3")),
	]
	assert set(_ids(search(candidates, SearchFilter(rate_min=0, rate_max=30)))) == {"p1", "p3"}
	assert _ids(search(candidates, SearchFilter(rate_min=20, rate_max=30))) == ["p1"]


def test_inverted_rate_range_is_swapped():
	flt = SearchFilter(rate_min=50, rate_max=20)
	assert (flt.rate_min, flt.rate_max) == (20, 50)
	candidates = [from_profile(provider("p1", hourly_rate=35.0))]
	assert _ids(search(candidates, flt)) == ["p1"]


def test_radius_scenario_and_missing_coordinates():
	candidates = [
		from_profile(provider("near", lat=_lat_north(10), lon=CENTER[1])),
		from_profile(provider("far", lat=_lat_north(60), lon=CENTER[1])),
		from_profile(provider("nowhere")),
	]
	flt = SearchFilter(radius={"lat": CENTER[0], "lon": CENTER[1], "radius_km": 50})
	results = search(candidates, flt)
	assert _ids(results) == ["near"]
	assert results[0].distance_km == pytest.approx(10.0, abs=0.1)

	# disabled geo filters keep candidates without coordinates
	assert len(search(candidates, SearchFilter())) == 3


def test_bounding_box_filter():
	candidates = [
		from_profile(provider("inside", lat=52.5, lon=13.4)),
		from_profile(provider("outside", lat=48.1, lon=11.5)),
		from_profile(provider("nowhere")),
	]
	flt = SearchFilter(bounds={"north": 53, "south": 52, "east": 14, "west": 13})
	assert _ids(search(candidates, flt)) == ["inside"]


def test_ranking_elite_then_score_then_newest():
	orgs = [
		from_profile(organization("o-old", name="Alt", age_days=10)),
		from_profile(organization("o-new", name="Neu", age_days=1)),
		from_profile(organization("o-elite", name="Premium", tier=SubscriptionTier.PREMIUM, age_days=30)),
	]
	assert _ids(rank(orgs)) == ["o-elite", "o-new", "o-old"]

	providers = [
		from_profile(provider("low", score=30, age_days=0)),
		from_profile(provider("high-old", score=90, age_days=20)),
		from_profile(provider("high-new", score=90, age_days=2)),
	]
	assert _ids(rank(providers)) == ["high-new", "high-old", "low"]


def test_ranking_is_stable_for_equal_keys():
	candidates = [from_profile(provider(f"p{i}", score=70)) for i in range(5)]
	assert _ids(rank(candidates)) == ["p0", "p1", "p2", "p3", "p4"]


def test_featured_listings_sort_first():
	listings = [
		from_listing(Listing(id="l1", organization_id="o1", title="Nachtdienst", created_at=BASE)),
		from_listing(
			Listing(id="l2", organization_id="o1", title="Tagdienst", is_featured=True, created_at=BASE - timedelta(days=5))
		),
	]
	assert _ids(search(listings, SearchFilter(kind="listing"))) == ["l2", "l1"]


def test_filter_rejects_out_of_range_values():
	with pytest.raises(SchemaError):
		SearchFilter(min_care_score=120)
	with pytest.raises(SchemaError):
		SearchFilter(language_level="Z9")
	with pytest.raises(SchemaError):
		SearchFilter(radius={"lat": 0, "lon": 0, "radius_km": -5})


def test_limit_is_capped():
	assert SearchFilter(limit=5000).limit == 100


@pytest.mark.asyncio
async def test_service_excludes_actor_and_pages(profile_store, listing_store):
	await profile_store.seed(
		[provider(f"p{i}", score=90 - i) for i in range(5)]
		+ [organization("o1", name="Pflegedienst Nord")]
	)
	service = DiscoveryService(profiles=profile_store, listings=listing_store)

	page = await service.search("user-p0", SearchFilter(limit=2, offset=1))
	assert page.total == 4
	assert _ids(page.items) == ["p2", "p3"]


@pytest.mark.asyncio
async def test_service_only_returns_active_listings(profile_store, listing_store):
	org = organization("o1", name="Pflegedienst Nord", company_type="ambulant")
	org.basics.latitude, org.basics.longitude = CENTER
	await profile_store.seed([org])
	await listing_store.seed(
		[
			Listing(id="l-open", organization_id="o1", title="Pflegefachkraft", created_at=BASE),
			Listing(id="l-closed", organization_id="o1", title="Altenpfleger", is_active=False, created_at=BASE),
		]
	)
	service = DiscoveryService(profiles=profile_store, listings=listing_store)

	page = await service.search(None, SearchFilter(kind="listing", company_type="Ambulant"))
	assert _ids(page.items) == ["l-open"]
	assert page.items[0].point is not None
