from .distance import EARTH_RADIUS_KM, distance_km, haversine_distance_km, haversine_distance_m

__all__ = ["EARTH_RADIUS_KM", "distance_km", "haversine_distance_km", "haversine_distance_m"]
