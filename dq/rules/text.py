"""Text heuristics shared by the name and description rules."""

import re
import unicodedata
from typing import Optional

from dq.rules import heuristics as h

EVENT_KEYWORDS = (
    "festival", "matsuri", "matsui", "noh", "ebisu", "honen", "setsubun",
    "yayoi", "toka", "takigi", "chibikko", "oto", "owari", "kanda",
    "illumination", "fireworks", "parade", "gozan",
)

SHRINE_TEMPLE_KEYWORDS = (
    "shrine", "temple", "pagoda", "torii", "buddhist", "shinto",
    "founded", "established", "century", "worship", "sacred",
    "deity", "god", "goddess",
)

# Name fragments that show a place is already named as a shrine or temple.
SHRINE_TEMPLE_NAME_KEYWORDS = (
    "shrine", "temple", "jinja", "taisha", "jingu", "-ji", "gu",
    "castle", "sanctuary", "pagoda",
)

ADDRESS_PATTERNS = (
    re.compile(r"^〒?\d{3}-?\d{4}"),
    re.compile(r"^\d{1,4}[-\s]\d{1,4}[-\s]"),
    re.compile(r"^[\d\s,]+$"),
    re.compile(r"^\d+-\d+\s+\w+,\s+\w+"),
)

GENERIC_DESC_PATTERNS = (
    re.compile(r"^(beach|attraction|museum|temple|shrine|park) in", re.IGNORECASE),
    re.compile(r"^A (restaurant|cafe|shop) in", re.IGNORECASE),
)

GENERIC_PLURAL_PATTERNS = (
    re.compile(r"^(sake|ramen|sushi|udon|soba)\s+(shops?|restaurants?|breweries)", re.IGNORECASE),
    re.compile(r"^(local|traditional)\s+\w+s$", re.IGNORECASE),
)

_FOUNDING_DATE = re.compile(r"\d{3,4}\s*(ad|ce|century|year)", re.IGNORECASE)
_BAD_START = re.compile(r"^[-_/()]")
_BAD_START_RUN = re.compile(r"^[-_/()]+")
_NON_SLUG = re.compile(r"[^a-z0-9]+")

CATEGORY_DESCRIPTION_TEMPLATES = {
    "museum": "A museum in {city} showcasing local culture and history.",
    "restaurant": "A dining establishment in {city} offering local cuisine.",
    "food": "A food establishment in {city} serving regional specialties.",
    "shrine": "A sacred Shinto shrine in {city} with spiritual significance.",
    "temple": "A Buddhist temple in {city} with historical and spiritual importance.",
    "landmark": "A notable landmark in {city} worth visiting.",
    "entertainment": "An entertainment venue in {city} offering activities and experiences.",
    "viewpoint": "A scenic viewpoint in {city} with panoramic views.",
    "attraction": "A popular attraction in {city} for visitors.",
    "nature": "A natural area in {city} offering scenic beauty.",
    "culture": "A cultural site in {city} with historical significance.",
    "shopping": "A shopping destination in {city} for local goods.",
    "accommodation": "Accommodation in {city} for travelers.",
}


def contains_event_keyword(name: str) -> bool:
    lower = name.lower()
    return any(keyword in lower for keyword in EVENT_KEYWORDS)


def contains_shrine_temple_keyword(text: str) -> bool:
    lower = text.lower()
    return any(keyword in lower for keyword in SHRINE_TEMPLE_KEYWORDS)


def has_shrine_temple_suffix(name: str) -> bool:
    lower = name.lower()
    return any(keyword in lower for keyword in SHRINE_TEMPLE_NAME_KEYWORDS)


def event_mismatch_confidence(name: str, editorial_summary: Optional[str]) -> int:
    """Weighted evidence that an event-like name really belongs to a shrine or temple."""
    lower = name.lower()
    score = sum(h.EVENT_KEYWORD_WEIGHT for keyword in EVENT_KEYWORDS if keyword in lower)

    if editorial_summary:
        summary = editorial_summary.lower()
        score += sum(h.SHRINE_KEYWORD_WEIGHT for keyword in SHRINE_TEMPLE_KEYWORDS if keyword in summary)
        if _FOUNDING_DATE.search(editorial_summary):
            score += h.FOUNDING_DATE_WEIGHT

    if len(name) < h.SHORT_NAME_LENGTH:
        score += h.SHORT_NAME_WEIGHT
    if not has_shrine_temple_suffix(name):
        score += h.MISSING_SUFFIX_WEIGHT

    return min(score, h.MAX_CONFIDENCE)


def is_address_like(description: Optional[str]) -> bool:
    if not description or len(description) > h.ADDRESS_DESC_MAX_LENGTH:
        return False
    return any(pattern.search(description) for pattern in ADDRESS_PATTERNS)


def is_truncated_description(description: Optional[str]) -> bool:
    return bool(description) and "a" <= description[0] <= "z"


def is_generic_description(description: Optional[str]) -> bool:
    if not description:
        return False
    return any(pattern.search(description) for pattern in GENERIC_DESC_PATTERNS)


def is_all_caps(name: str) -> bool:
    letters = re.sub(r"[^a-zA-Z]", "", name)
    return len(letters) > 2 and letters == letters.upper()


def has_bad_name_start(name: str) -> bool:
    return bool(_BAD_START.match(name))


def strip_bad_name_start(name: str) -> str:
    return _BAD_START_RUN.sub("", name).strip()


def is_generic_plural(name: str) -> bool:
    return any(pattern.search(name) for pattern in GENERIC_PLURAL_PATTERNS)


def to_slug(name: str) -> str:
    return _NON_SLUG.sub("-", name.lower()).strip("-")


def title_case(name: str) -> str:
    return " ".join(word[:1].upper() + word[1:] for word in name.lower().split(" "))


def fold_accents(text: str) -> str:
    """Lowercase and drop diacritics (``ō`` -> ``o``)."""
    decomposed = unicodedata.normalize("NFD", text.lower())
    return "".join(char for char in decomposed if not unicodedata.combining(char))


def category_description(category: str, city: str) -> str:
    template = CATEGORY_DESCRIPTION_TEMPLATES.get((category or "").lower())
    if template is None:
        return f"A point of interest in {city}."
    return template.format(city=city)


def normalize_text(value: Optional[str]) -> str:
    """Collapse whitespace and case so trivial edits do not count as changes."""
    return " ".join((value or "").split()).casefold()


# Endings of romanised Japanese place names (island, mountain, river, temple, ...).
GEOGRAPHIC_SUFFIXES = (
    "jima", "shima", "yama", "san", "dake", "take", "kawa", "gawa",
    "machi", "cho", "juku", "shuku", "ji", "dera", "in", "gu", "sha", "jinja",
    "ko", "ike", "hama", "ura", "saki", "zaki", "misaki", "kyo", "kei",
    "dori", "tori", "bashi", "hashi", "mon", "kaku", "en", "tei", "onsen",
    "so", "sou", "kan", "bo", "daira", "taira", "taki", "hetsuri", "kogen", "go",
)

# Districts, islands and towns whose single-word name is complete.
KNOWN_AREA_NAMES = frozenset(
    {
        # Tokyo
        "shibuya", "shinjuku", "harajuku", "akihabara", "ginza", "asakusa", "roppongi",
        "ikebukuro", "ueno", "akasaka", "azabu", "meguro", "nakameguro", "shimokitazawa",
        "kagurazaka", "kabukicho", "odaiba", "shiodome", "marunouchi", "nihonbashi",
        "inokashira", "kiyosumi", "sumiyoshi", "ebisu", "daikanyama", "yanaka", "koenji",
        "shibaura",
        # Osaka, Kyoto, Kobe
        "namba", "dotonbori", "shinsekai", "umeda", "shinsaibashi", "tennoji", "nakanoshima",
        "gion", "arashiyama", "higashiyama", "pontocho", "kitayama", "naramachi", "rakusei",
        "nishiki", "maruyama", "kawaramachi", "kitanocho", "harbourland", "meriken",
        "motomachi", "sannomiya",
        # other city districts
        "tenjin", "nakasu", "sakae", "chinatown", "hamaotsu", "sakamoto", "shuri", "arimatsu",
        # islands
        "naoshima", "miyajima", "enoshima", "hashima", "gunkanjima", "yakushima",
        "iriomote", "ishigaki", "taketomi", "zamami", "tokashiki", "okinawa", "manazuru", "miyako",
        # destinations
        "hakone", "nikko", "kamakura", "nara", "kobe", "yokohama", "nagasaki", "hiroshima",
        "kanazawa", "takayama", "shirakawago", "shirakawa", "tsumago", "magome", "karuizawa",
        "furano", "biei", "otaru", "noboribetsu", "hakodate", "matsumoto", "nagano", "uji",
        "koyasan", "yoshino", "amanohashidate", "sapporo", "kagoshima", "kumamoto", "fukuoka",
        "onomichi", "kurashiki", "okayama", "matsuyama", "takamatsu", "naha",
        "dorogawa", "kurokawa", "kinosaki", "beppu", "yufuin", "ibusuki",
        # mountains, valleys, cliffs
        "kamikochi", "owakudani", "shiobara", "yugawara", "nagatoro", "tojinbo",
        # historic towns
        "sawara", "mimitsu", "yuasa", "soma",
        # single-word landmarks
        "kabukiza", "tamaudun",
        "shiraho", "shizunai", "mikamine", "sakitama", "senbonmatsu", "kuroshio",
        # hyphenated compounds
        "kisouma-no-sato", "men-no-ishi", "sansyu-izutsuyashiki", "to-no-hetsuri",
    }
)


def has_geographic_suffix(name: str) -> bool:
    folded = fold_accents(name)
    return any(folded.endswith(suffix) and len(folded) > len(suffix) for suffix in GEOGRAPHIC_SUFFIXES)


def is_known_area_name(name: str) -> bool:
    folded = fold_accents(name.strip())
    return folded in KNOWN_AREA_NAMES or folded.replace("-", "") in KNOWN_AREA_NAMES
