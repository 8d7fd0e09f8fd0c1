"""Geo filter exports."""

from .geo import (
	EARTH_RADIUS_KM,
	BoundingBox,
	GeoPoint,
	distance_km,
	haversine_km,
	in_bounding_box,
	point_or_none,
	within_radius_km,
)

__all__ = [
	"EARTH_RADIUS_KM",
	"BoundingBox",
	"GeoPoint",
	"distance_km",
	"haversine_km",
	"in_bounding_box",
	"point_or_none",
	"within_radius_km",
]
