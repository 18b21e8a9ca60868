"""
Application-wide constants to replace magic numbers and strings.
"""
# Timeouts (in seconds)
HTTP_TIMEOUT = 30.0

# Provider request parameters
PROVIDER_TEMPERATURE = 0.7
PROVIDER_MAX_OUTPUT_TOKENS = 500
PROVIDER_USER_AGENT = "review-autoresponder/1.0"
PROVIDER_TEST_PROMPT = (
    'This is a test message. Please respond with "Test successful" '
    "to confirm the connection is working."
)
FALLBACK_PROVIDER_NAME = "fallback"

# Storage limits (characters)
MAX_RESPONSE_TEXT_LENGTH = 16777215
MAX_MODEL_NAME_LENGTH = 100
MAX_REASON_LENGTH = 65535
MAX_LOG_DETAILS_LENGTH = 65535
TRUNCATION_MARKER = "..."

# Queue
MAX_QUEUE_ATTEMPTS = 3
QUEUE_REDIS_KEY = "autoresponder:review_queue"
PROCESSING_MARKER_PREFIX = "autoresponder:processing"
OPTIONS_REDIS_KEY = "autoresponder:options"

# Statistics / notification windows
RECENT_ACTIVITY_DAYS = 30
HIGH_VOLUME_WINDOW_HOURS = 24
ERROR_WINDOW_HOURS = 1

# Prompt shaping
MAX_PRODUCT_SUMMARY_LINES = 3
MAX_HISTORY_REVIEWS = 2
HISTORY_EXCERPT_LENGTH = 100
RECENT_REVIEWS_FETCH = 5
TRUNCATE_BOUNDARY_RATIO = 0.8

AI_ATTRIBUTION = "[Response generated with AI assistance]"

# Canned replies for reviews the filter declines; rotated by review id
FALLBACK_TEMPLATES = (
    "Thank you for taking the time to share your feedback with us.",
    "We appreciate your review and will pass your comments on to our team.",
    "Thanks for your review! Your feedback helps us improve.",
)

# ── Review filter word lists ──
SPAM_PHRASES = (
    "buy now", "click here", "free money", "make money",
    "viagra", "casino", "poker", "lottery",
)
SPAM_MAX_LINKS = 2
SPAM_MAX_WORD_REPEATS = 5

NEGATIVE_WORDS = (
    "terrible", "awful", "horrible", "worst", "disappointed",
    "waste", "useless", "broken", "defective", "scam",
)
NEGATIVE_MIN_MATCHES = 3
NEGATIVE_MAX_RATING = 2

QUESTION_PHRASES = (
    "?", "how do", "what is", "when will", "where can",
    "why does", "can i get", "is it possible",
)
