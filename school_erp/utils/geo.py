"""Great-circle distance for the attendance geofence."""
import math

EARTH_RADIUS_METERS = 6371000


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Distance in metres between two WGS84 points."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_METERS * c


def check_geofence(school, latitude: float, longitude: float) -> dict:
    """Evaluate a point against a school's geofence; unconfigured schools always pass."""
    if not school.has_geofence:
        return {
            "allowed": True,
            "configured": False,
            "distance_meters": None,
            "radius_meters": None,
        }
    distance = haversine_distance(school.latitude, school.longitude, latitude, longitude)
    return {
        "allowed": distance <= school.radius_meters,
        "configured": True,
        "distance_meters": round(distance, 1),
        "radius_meters": school.radius_meters,
    }
