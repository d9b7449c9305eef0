"""
Address geocoding against a Nominatim-compatible search endpoint.
"""
import logging
import math
import os
from typing import Optional, Dict

import requests

from .constants import GEOCODER_URL, GEOCODER_USER_AGENT

logger = logging.getLogger("smartreturn")


def geocoding_enabled() -> bool:
    return os.environ.get("GEOCODING_ENABLED", "1") == "1"


def geocode(address: str) -> Optional[Dict[str, float]]:
    """
    Resolve a free-form address to coordinates.

    Returns {"latitude": float, "longitude": float} for the first hit,
    or None when disabled, not found, or the lookup failed.
    """
    if not address or not address.strip():
        return None

    if not geocoding_enabled():
        logger.info("Geocoding disabled, skipping lookup")
        return None

    try:
        response = requests.get(
            GEOCODER_URL,
            params={"q": address.strip(), "format": "json", "limit": 1},
            headers={"User-Agent": GEOCODER_USER_AGENT},
            timeout=10,
        )
        response.raise_for_status()
        results = response.json()
    except requests.exceptions.RequestException as e:
        logger.error(f"Geocoding error for '{address}': {e}")
        return None
    except ValueError as e:
        logger.error(f"Geocoding returned invalid JSON: {e}")
        return None

    if not results:
        logger.info(f"No geocoding result for '{address}'")
        return None

    first = results[0]
    try:
        return {
            "latitude": float(first["lat"]),
            "longitude": float(first["lon"]),
        }
    except (KeyError, TypeError, ValueError) as e:
        logger.error(f"Unexpected geocoding result {first}: {e}")
        return None


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in kilometres."""
    earth_radius = 6371.0
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (math.sin(d_lat / 2) ** 2
         + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2)
    return earth_radius * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
