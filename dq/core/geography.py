"""Geography constants and helpers for the catalog (Japan)."""

import math
import re
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

EARTH_RADIUS_M = 6_371_000.0

# Approximate bounds: Okinawa to Hokkaido, Yonaguni to Minami-Torishima.
LAT_BOUNDS = (24.0, 46.0)
LNG_BOUNDS = (122.0, 154.0)

MIN_COORDINATE_PRECISION = 4

VALID_CATEGORIES = frozenset(
    {
        "accommodation",
        "attraction",
        "bar",
        "culture",
        "entertainment",
        "experience",
        "food",
        "landmark",
        "market",
        "museum",
        "nature",
        "park",
        "restaurant",
        "shopping",
        "shrine",
        "temple",
        "transport",
        "viewpoint",
        "wellness",
    }
)

PREFECTURE_REGION_MAP: Dict[str, str] = {
    "Hokkaido": "Hokkaido",
    "Aomori": "Tohoku",
    "Iwate": "Tohoku",
    "Miyagi": "Tohoku",
    "Akita": "Tohoku",
    "Yamagata": "Tohoku",
    "Fukushima": "Tohoku",
    "Ibaraki": "Kanto",
    "Tochigi": "Kanto",
    "Gunma": "Kanto",
    "Saitama": "Kanto",
    "Chiba": "Kanto",
    "Tokyo": "Kanto",
    "Kanagawa": "Kanto",
    "Niigata": "Chubu",
    "Toyama": "Chubu",
    "Ishikawa": "Chubu",
    "Fukui": "Chubu",
    "Yamanashi": "Chubu",
    "Nagano": "Chubu",
    "Gifu": "Chubu",
    "Shizuoka": "Chubu",
    "Aichi": "Chubu",
    "Mie": "Kansai",
    "Shiga": "Kansai",
    "Kyoto": "Kansai",
    "Osaka": "Kansai",
    "Hyogo": "Kansai",
    "Nara": "Kansai",
    "Wakayama": "Kansai",
    "Tottori": "Chugoku",
    "Shimane": "Chugoku",
    "Okayama": "Chugoku",
    "Hiroshima": "Chugoku",
    "Yamaguchi": "Chugoku",
    "Tokushima": "Shikoku",
    "Kagawa": "Shikoku",
    "Ehime": "Shikoku",
    "Kochi": "Shikoku",
    "Fukuoka": "Kyushu",
    "Saga": "Kyushu",
    "Nagasaki": "Kyushu",
    "Kumamoto": "Kyushu",
    "Oita": "Kyushu",
    "Miyazaki": "Kyushu",
    "Kagoshima": "Kyushu",
    "Okinawa": "Okinawa",
}

VALID_REGIONS = frozenset(PREFECTURE_REGION_MAP.values())

_PREFECTURE_SUFFIX = re.compile(r"\s+(Prefecture|Ken|Fu|To|Do)$", re.IGNORECASE)
_PREFECTURE_DASH_SUFFIX = re.compile(r"-(ken|fu|to|do)$", re.IGNORECASE)


def normalize_prefecture_name(name: str) -> str:
    """Strip suffixes like " Prefecture" or "-ken" and capitalise."""
    normalized = _PREFECTURE_SUFFIX.sub("", name.strip())
    normalized = _PREFECTURE_DASH_SUFFIX.sub("", normalized)
    return normalized[:1].upper() + normalized[1:].lower()


def expected_region(prefecture: str) -> Optional[str]:
    return PREFECTURE_REGION_MAP.get(normalize_prefecture_name(prefecture))


def is_valid_region(region: str) -> bool:
    return region in VALID_REGIONS


def is_within_bounds(lat: float, lng: float) -> bool:
    return LAT_BOUNDS[0] <= lat <= LAT_BOUNDS[1] and LNG_BOUNDS[0] <= lng <= LNG_BOUNDS[1]


def coordinate_precision(value: float) -> int:
    """Number of decimal digits in the shortest representation of ``value``.

    Whole numbers have no decimals; NaN and infinities count as zero.
    """
    value = float(value)
    if not math.isfinite(value) or value.is_integer():
        return 0
    exponent = Decimal(repr(value)).as_tuple().exponent
    return max(0, -exponent)


def has_sufficient_precision(lat: float, lng: float) -> bool:
    return (
        coordinate_precision(lat) >= MIN_COORDINATE_PRECISION
        and coordinate_precision(lng) >= MIN_COORDINATE_PRECISION
    )


def coordinate_key(lat: float, lng: float) -> str:
    """Grouping key at 6 decimal places (about 11 cm)."""
    return f"{lat:.6f},{lng:.6f}"


def haversine_m(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in metres."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.atan2(math.sqrt(a), math.sqrt(1 - a))


_CITY_CANONICAL_NAMES = {
    "amakusa, kumamoto": "Amakusa",
    "asahikawa/kamikawa": "Asahikawa",
}


def normalize_city_name(city: str) -> str:
    canonical = _CITY_CANONICAL_NAMES.get(city.lower().strip())
    if canonical:
        return canonical

    normalized = city.strip()
    if "," in normalized:
        normalized = normalized.split(",")[0].strip()
    if "/" in normalized:
        normalized = normalized.split("/")[0].strip()
    return normalized


def city_normalization_suggestion(city: str) -> Optional[Tuple[str, str]]:
    """Return ``(normalized, reason)`` when the city needs normalising."""
    normalized = normalize_city_name(city)
    if normalized == city.strip():
        return None

    if "," in city:
        reason = "Removed prefecture suffix after comma"
    elif "/" in city:
        reason = "Removed secondary city name after slash"
    else:
        reason = "Canonical name mapping applied"
    return normalized, reason


MAJOR_CITIES: List[str] = [
    "Tokyo",
    "Osaka",
    "Kyoto",
    "Yokohama",
    "Nagoya",
    "Sapporo",
    "Fukuoka",
    "Kobe",
    "Kawasaki",
    "Hiroshima",
    "Sendai",
    "Kitakyushu",
    "Chiba",
    "Sakai",
    "Niigata",
    "Hamamatsu",
    "Kumamoto",
    "Sagamihara",
    "Okayama",
    "Shizuoka",
    "Kagoshima",
    "Kanazawa",
    "Nara",
    "Nagasaki",
    "Matsuyama",
    "Takamatsu",
]

# City -> prefecture, for rows whose city column holds the prefecture instead.
CITY_TO_PREFECTURE: Dict[str, str] = {
    "sendai": "miyagi",
    "kanazawa": "ishikawa",
    "matsuyama": "ehime",
    "takamatsu": "kagawa",
    "nagasaki": "nagasaki",
    "kumamoto": "kumamoto",
    "kagoshima": "kagoshima",
    "hiroshima": "hiroshima",
    "okayama": "okayama",
    "niigata": "niigata",
    "nagoya": "aichi",
    "sapporo": "hokkaido",
    "yokohama": "kanagawa",
    "kobe": "hyogo",
    "kawasaki": "kanagawa",
    "hamamatsu": "shizuoka",
    "shizuoka": "shizuoka",
    "chiba": "chiba",
    "sakai": "osaka",
}

# Brand names, food styles and compound names where a city is not a location.
NAME_EXCEPTION_PATTERNS = [
    re.compile(r"\bkawasaki\s+(heavy|industries)", re.IGNORECASE),
    re.compile(r"\bg\.\s*sakai\b", re.IGNORECASE),
    re.compile(r"\baji\s+no\s+sapporo\b", re.IGNORECASE),
    re.compile(r"\bbitchu\s+matsuyama\b", re.IGNORECASE),
    re.compile(r"\bsapporo\b.*\b(ramen|beer|lager|style|stellar)\b", re.IGNORECASE),
    re.compile(r"\b(ramen|beer|lager|style)\b.*\bsapporo\b", re.IGNORECASE),
    re.compile(r"\bkyoto\s+(style|sushi|cuisine|head\s+shop)\b", re.IGNORECASE),
    re.compile(r"\bosaka\s+(style|okonomiyaki|sushi)\b", re.IGNORECASE),
    re.compile(r"\btokyo\s+(disney|disneyland|disneysea|sea|game|metropolitan|international)", re.IGNORECASE),
    re.compile(r"\bsushi\s+sakai\b", re.IGNORECASE),
    re.compile(r"\btakamatsu\s+park\b", re.IGNORECASE),
    re.compile(r"\bkanazawa\s+district\b", re.IGNORECASE),
    re.compile(r"\bnara\s+ikaruga\b", re.IGNORECASE),
    re.compile(r"\bniigata\s+prefectural\b", re.IGNORECASE),
]

_CITY_WORD_PATTERNS = {
    city: re.compile(rf"\b{re.escape(city.lower())}\b", re.IGNORECASE) for city in MAJOR_CITIES
}


def find_mismatched_city_in_name(location_name: str, actual_city: str) -> Optional[str]:
    """Return a major city named in ``location_name`` that differs from ``actual_city``."""
    if any(pattern.search(location_name) for pattern in NAME_EXCEPTION_PATTERNS):
        return None

    actual = actual_city.lower()
    for city in MAJOR_CITIES:
        city_lower = city.lower()
        if city_lower == actual:
            continue
        if not _CITY_WORD_PATTERNS[city].search(location_name):
            continue
        if CITY_TO_PREFECTURE.get(city_lower) == actual:
            continue
        return city
    return None
