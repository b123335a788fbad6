"""Hand-tuned scoring weights, cutoffs and confidences.

These numbers were chosen empirically against the live catalog; none of
them is derived. Tune them here rather than inside the rules.
"""

OVERRIDE_CONFIDENCE = 100

# Event-name mismatch score (name looks like a festival, summary like a shrine).
EVENT_KEYWORD_WEIGHT = 20
SHRINE_KEYWORD_WEIGHT = 10
FOUNDING_DATE_WEIGHT = 15
SHORT_NAME_WEIGHT = 10
SHORT_NAME_LENGTH = 15
MISSING_SUFFIX_WEIGHT = 15
MAX_CONFIDENCE = 100
EVENT_REPORT_THRESHOLD = 40
EVENT_HIGH_SEVERITY_THRESHOLD = 80

# Duplicate quality score.
PLACE_ID_BONUS = 30
DESCRIPTION_BONUS = 20
DESCRIPTION_BONUS_MIN_LENGTH = 20
EDITORIAL_BONUS = 15
EDITORIAL_BONUS_MIN_LENGTH = 50
COORDINATES_BONUS = 10
LONG_DESCRIPTION_BONUS = 10
LONG_DESCRIPTION_MIN_LENGTH = 100
DUPLICATE_KEEP_CONFIDENCE = 70
DUPLICATE_DELETE_CONFIDENCE = 60
NEARBY_DUPLICATE_RADIUS_M = 1000.0

# Names.
NAME_ID_CONFIDENCE = 100
NAME_ID_MIN_LENGTH_GAP = 5
ALL_CAPS_CONFIDENCE = 80
BAD_NAME_START_CONFIDENCE = 90
TRUNCATED_NAME_CONFIDENCE = 50
TRUNCATED_NAME_MAX_WORDS = 4
SHORT_NAME_WITH_PLACE_ID_CONFIDENCE = 70
SHORT_NAME_WITHOUT_PLACE_ID_CONFIDENCE = 30
SHORT_NAME_MIN_LENGTH = 4
CITY_VARIANT_CONFIDENCE = 80
NAME_CITY_MISMATCH_CONFIDENCE = 30

# Descriptions.
EDITORIAL_SUMMARY_MIN_LENGTH = 50
ADDRESS_DESC_MAX_LENGTH = 100
ADDRESS_EDITORIAL_CONFIDENCE = 90
TRUNCATED_LOOKUP_CONFIDENCE = 70
TRUNCATED_EDITORIAL_CONFIDENCE = 80
MISSING_EDITORIAL_CONFIDENCE = 90
GENERATED_DESCRIPTION_CONFIDENCE = 50
SHORT_DESC_LENGTH = 30
SHORT_DESC_EDITORIAL_CONFIDENCE = 80
GENERIC_DESC_EDITORIAL_CONFIDENCE = 85

# Categories.
EVENT_CATEGORY_CONFIDENCE = 70
INFERRED_CATEGORY_CONFIDENCE = 60
ACCOMMODATION_RESTAURANT_CONFIDENCE = 75
LANDMARK_CATEGORY_CONFIDENCE = 85
REGION_FROM_PREFECTURE_CONFIDENCE = 95

# Third-party enrichment.
GOOGLE_TYPE_CONFIDENCE = 90
GOOGLE_ACCOMMODATION_TYPE_CONFIDENCE = 85
GOOGLE_AIRPORT_CONFIDENCE = 95
GOOGLE_CONTENT_CONFIDENCE = 90
GOOGLE_NAME_CONFIDENCE = 70

# Completeness.
PERMANENTLY_CLOSED_CONFIDENCE = 90
MAX_RATING = 5.0
