"""Constants and configuration values for Feedback Radar."""

# Relevance Filtering Constants
class FilterConstants:
    """Constants related to deciding whether text discusses the product."""

    # Domain keywords that signal a software-product discussion
    SOFTWARE_KEYWORDS = [
        "app", "software", "tool", "platform", "service", "product",
        "feature", "pricing", "subscription", "free tier", "alternative",
        "review", "compared", "vs", "switched", "migrated", "using",
        "workflow", "integration", "api", "plugin", "extension",
        "saas", "cloud", "web", "mobile", "desktop", "browser",
        "ux", "ui", "design", "dashboard", "login", "account",
    ]

    MIN_KEYWORDS_STRONG_MATCH = 1  # name matched at a word boundary
    MIN_KEYWORDS_FUZZY_MATCH = 2  # only a variant / misspelling matched
    FUZZY_MIN_NAME_LENGTH = 6  # edit-distance check only for names longer than 5 chars
    FUZZY_MAX_DIFF = 1


# Deduplication Constants
class DedupConstants:
    """Constants for lexical near-duplicate detection."""

    MIN_NORMALIZED_LENGTH = 20  # shorter texts carry too little signal
    PREFIX_LENGTH = 100  # reposts with divergent tails share this prefix


# Source Client Constants
class SourceConstants:
    """Constants for content-source fetching."""

    MAX_ITEM_TEXT_LENGTH = 500  # chars kept per raw item
    MIN_PARENT_TEXT_LENGTH = 50
    MIN_REDDIT_COMMENT_LENGTH = 30
    MIN_HN_COMMENT_LENGTH = 10
    MIN_SO_ANSWER_LENGTH = 30
    MIN_DEVTO_COMMENT_LENGTH = 30
    DEFAULT_PARENT_LIMIT = 10
    DEFAULT_CHILDREN_PER_PARENT = 20
    VARIATION_PARENT_LIMIT = 3  # parents fetched per secondary query variation
    UNKNOWN_AUTHOR = "[unknown]"


# Classification Constants
class ClassifierConstants:
    """Constants for per-item labelling."""

    BATCH_SIZE = 10
    MAX_TEXT_FOR_PROMPT = 1000
    TEMPERATURE = 0.2
    MAX_TOKENS = 300
    # VADER compound thresholds used by the offline classifier
    POSITIVE_COMPOUND = 0.05
    NEGATIVE_COMPOUND = -0.05


# Synthesis Constants
class SynthesisConstants:
    """Constants for narrative synthesis and its quality rubric."""

    MAX_TEXT_IN_PROMPT = 300  # chars of each item shown to the model
    MIN_INSIGHTS = 2
    MAX_INSIGHTS = 4
    MIN_SUMMARY_LENGTH = 20
    TARGET_COVERAGE = 0.3
    QUALITY_THRESHOLD = 0.6
    MAX_TOKENS = 2000

    # Rubric weights: coverage, specificity, index validity, structure
    WEIGHT_COVERAGE = 0.3
    WEIGHT_SPECIFICITY = 0.3
    WEIGHT_VALIDITY = 0.2
    WEIGHT_STRUCTURE = 0.2

    GENERIC_TITLES = frozenset({
        "user feedback",
        "user feedback highlights",
        "general feedback",
        "positive feedback",
        "negative feedback",
        "areas for improvement",
        "mixed reviews",
        "overall sentiment",
    })


# Scoring Constants
class ScoringConstants:
    """Constants for the deterministic scorer."""

    NEUTRAL_SCORE = 50
    COVERAGE_MIN_MENTIONS = 5  # aspect counts as covered above this many mentions


# Language Model Constants
class LLMConstants:
    """Constants for the language-model service."""

    MAX_RETRY_ATTEMPTS = 3
    RETRY_BASE_DELAY = 2  # seconds, doubled per attempt
    DEFAULT_MAX_TOKENS = 800
    CACHE_TTL_HOURS = 24
    CACHE_KEY_LENGTH = 8  # chars of the cache key shown in logs


# Error Handling Constants
class ErrorConstants:
    """Constants for error handling and retries."""

    RETRYABLE_STATUS = 429
    SERVER_ERROR_MIN = 500
    EMPTY_RESULT_MESSAGE = (
        'No relevant discussions found for "{product}". '
        "Try a more specific product name."
    )
    ALL_SOURCES_FAILED_MESSAGE = (
        'Every content source failed while searching for "{product}". '
        "Please try again in a few minutes."
    )


# File and Path Constants
class FileConstants:
    """Constants for file operations."""

    LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
