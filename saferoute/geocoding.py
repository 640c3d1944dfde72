"""
Placeholder geocoder for Bangladesh place names.

Lookup order:
  1. Exact match on the normalized name (trimmed, lowercased)
  2. Substring match in either direction, first hit in table order
  3. Deterministic fallback: char-code sum of the raw input offsets a base
     point near central Dhaka, so the same string always lands on the same spot

Collisions in step 3 are acceptable; this is not a real geocoder.
"""

import asyncio
import logging
from typing import Dict, Tuple

from .models import RoutePoint

logger = logging.getLogger(__name__)

# name -> (lat, lon, display name). Order matters for substring matching.
GAZETTEER: Dict[str, Tuple[float, float, str]] = {
    # Major cities
    "dhaka": (23.8103, 90.4125, "Dhaka"),
    "chittagong": (22.3569, 91.7832, "Chittagong"),
    "chattogram": (22.3569, 91.7832, "Chattogram"),
    "khulna": (22.8456, 89.5403, "Khulna"),
    "rajshahi": (24.3745, 88.6042, "Rajshahi"),
    "sylhet": (24.8949, 91.8687, "Sylhet"),
    "barisal": (22.7010, 90.3535, "Barisal"),
    "rangpur": (25.7439, 89.2752, "Rangpur"),
    "mymensingh": (24.7471, 90.4203, "Mymensingh"),
    "comilla": (23.4607, 91.1809, "Comilla"),
    "narayanganj": (23.6238, 90.5000, "Narayanganj"),
    "gazipur": (23.9999, 90.4203, "Gazipur"),
    "cox's bazar": (21.4272, 92.0058, "Cox's Bazar"),
    "jessore": (23.1664, 89.2081, "Jessore"),
    "bogra": (24.8465, 89.3773, "Bogra"),
    # Dhaka districts and landmarks
    "gulshan": (23.7925, 90.4078, "Gulshan"),
    "banani": (23.7937, 90.4066, "Banani"),
    "dhanmondi": (23.7461, 90.3742, "Dhanmondi"),
    "mirpur": (23.8223, 90.3654, "Mirpur"),
    "uttara": (23.8759, 90.3795, "Uttara"),
    "motijheel": (23.7330, 90.4172, "Motijheel"),
    "mohammadpur": (23.7662, 90.3589, "Mohammadpur"),
    "old dhaka": (23.7104, 90.4074, "Old Dhaka"),
    "tejgaon": (23.7639, 90.3889, "Tejgaon"),
    "badda": (23.7806, 90.4261, "Badda"),
    "shahbagh": (23.7381, 90.3958, "Shahbagh"),
    "farmgate": (23.7561, 90.3872, "Farmgate"),
    "bashundhara": (23.8193, 90.4526, "Bashundhara"),
    "sadarghat": (23.7058, 90.4106, "Sadarghat"),
    "dhaka university": (23.7340, 90.3928, "Dhaka University"),
    "shahjalal airport": (23.8434, 90.3978, "Hazrat Shahjalal International Airport"),
}

# Base point for hash fallback (central Dhaka)
FALLBACK_BASE_LAT = 23.7000
FALLBACK_BASE_LON = 90.3000
FALLBACK_LAT_MOD, FALLBACK_LAT_STEP = 97, 0.002
FALLBACK_LON_MOD, FALLBACK_LON_STEP = 89, 0.002


def normalize_name(name: str) -> str:
    return name.strip().lower()


def _name_hash(text: str) -> int:
    return sum(ord(ch) for ch in text)


def fallback_point(name: str) -> RoutePoint:
    """Deterministic pseudo-coordinate for names the gazetteer doesn't know."""
    h = _name_hash(name)
    return RoutePoint(
        lat=FALLBACK_BASE_LAT + (h % FALLBACK_LAT_MOD) * FALLBACK_LAT_STEP,
        lon=FALLBACK_BASE_LON + (h % FALLBACK_LON_MOD) * FALLBACK_LON_STEP,
        name=name,
    )


class GeocodeResolver:
    def __init__(
        self,
        gazetteer: Dict[str, Tuple[float, float, str]] | None = None,
        latency_s: float = 0.0,
    ):
        self.gazetteer = GAZETTEER if gazetteer is None else gazetteer
        self.latency_s = latency_s

    def lookup(self, name: str) -> RoutePoint:
        """Synchronous resolution. Never raises."""
        key = normalize_name(name)

        hit = self.gazetteer.get(key)
        if hit is not None:
            logger.debug("[GEOCODING] '%s' exact match", name)
            return RoutePoint(lat=hit[0], lon=hit[1], name=hit[2])

        # An empty key is contained in every entry, so skip straight to the hash
        if key:
            for entry, (lat, lon, display) in self.gazetteer.items():
                if key in entry or entry in key:
                    logger.debug("[GEOCODING] '%s' substring match on '%s'", name, entry)
                    return RoutePoint(lat=lat, lon=lon, name=display)

        point = fallback_point(name)
        logger.info(
            "[GEOCODING] '%s' not in gazetteer, synthesized lat=%.4f, lon=%.4f",
            name, point.lat, point.lon,
        )
        return point

    async def resolve(self, name: str) -> RoutePoint:
        if self.latency_s > 0:
            await asyncio.sleep(self.latency_s)
        return self.lookup(name)
