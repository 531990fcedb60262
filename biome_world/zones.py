# biome_world/zones.py

"""Human-readable climate and moisture bands for normalised field values."""

from typing import Optional

# Ordered hottest/wettest first; boundaries are shared between neighbours and
# the first matching band wins.
CLIMATE_ZONES = {
    "Scorching": (0.85, 1.0),
    "Hot": (0.7, 0.85),
    "Warm": (0.5, 0.7),
    "Cool": (0.3, 0.5),
    "Cold": (0.15, 0.3),
    "Freezing": (0.0, 0.15),
}

MOISTURE_ZONES = {
    "Super Saturated": (0.85, 1.0),
    "Wet": (0.7, 0.85),
    "Balanced": (0.3, 0.7),
    "Dry": (0.15, 0.3),
    "Arid": (0.0, 0.15),
}

# Moisture above this floor gets the coastal humidity boost.
BALANCED_MOISTURE_MIN = MOISTURE_ZONES["Balanced"][0]


def _describe(value: Optional[float], zones: dict) -> Optional[str]:
    if value is None:
        return None
    for name, (low, high) in zones.items():
        if low <= value <= high:
            return name
    return None


def describe_temperature(value: Optional[float]) -> Optional[str]:
    return _describe(value, CLIMATE_ZONES)


def describe_moisture(value: Optional[float]) -> Optional[str]:
    return _describe(value, MOISTURE_ZONES)
