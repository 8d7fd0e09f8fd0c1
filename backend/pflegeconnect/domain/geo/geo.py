"""Great-circle distance and area containment over latitude/longitude pairs."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

EARTH_RADIUS_KM = 6371.0


@dataclass(frozen=True, slots=True)
class GeoPoint:
	lat: float
	lon: float


@dataclass(frozen=True, slots=True)
class BoundingBox:
	"""Visible map area; edges are inclusive."""

	north: float
	south: float
	east: float
	west: float

	def __post_init__(self) -> None:
		if self.south > self.north:
			north, south = self.south, self.north
			object.__setattr__(self, "north", north)
			object.__setattr__(self, "south", south)

	@property
	def crosses_antimeridian(self) -> bool:
		return self.west > self.east


def point_or_none(lat: Optional[float], lon: Optional[float]) -> Optional[GeoPoint]:
	if lat is None or lon is None:
		return None
	return GeoPoint(lat=float(lat), lon=float(lon))


def haversine_km(a: GeoPoint, b: GeoPoint) -> float:
	"""Return the great-circle distance between two points in kilometres."""

	phi1, phi2 = math.radians(a.lat), math.radians(b.lat)
	dphi = math.radians(b.lat - a.lat)
	dlambda = math.radians(b.lon - a.lon)
	h = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
	h = min(1.0, max(0.0, h))
	return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def in_bounding_box(point: Optional[GeoPoint], box: BoundingBox) -> bool:
	if point is None:
		return False
	if not box.south <= point.lat <= box.north:
		return False
	if box.crosses_antimeridian:
		return point.lon >= box.west or point.lon <= box.east
	return box.west <= point.lon <= box.east


def within_radius_km(point: Optional[GeoPoint], center: GeoPoint, radius_km: float) -> bool:
	if point is None:
		return False
	if radius_km < 0:
		return False
	return haversine_km(point, center) <= radius_km


def distance_km(point: Optional[GeoPoint], center: Optional[GeoPoint]) -> Optional[float]:
	"""Distance rounded to 0.1 km for display, or None when either side is unknown."""

	if point is None or center is None:
		return None
	return round(haversine_km(point, center), 1)
