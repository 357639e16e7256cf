"""
Constants for the adaptive scoring system.
"""

from pathlib import Path

MODULE_ROOT = Path(__file__).parent

PROMPTS_DIR = MODULE_ROOT / "prompts"

DEFAULT_SETTINGS_PATH = MODULE_ROOT / "data" / "settings.yaml"

# Environment variables
SETTINGS_PATH_ENV_VAR = "ADAPTIVE_SCORING_CONFIG"
GEMINI_API_KEY_ENV_VAR = "GEMINI_API_KEY"

DB_NAME = "adaptive_scoring.db"

# The profile is a single logical record with a fixed identity
PROFILE_ID = "user-profile"

# Profile shape
MAX_PREFERENCES = 15
MIN_MANUAL_PREFERENCE_LENGTH = 5

# Learner threshold: both positive and negative examples are needed
MIN_RELEVANT_RATINGS = 2
MIN_NOT_RELEVANT_RATINGS = 2

# Retry budgets (attempts in total, not retries after the first)
PROFILE_GENERATION_ATTEMPTS = 3
TOPIC_GATE_ATTEMPTS = 2
PREFERENCE_SCORING_ATTEMPTS = 3

# Cumulative step failures after which a scoring run is abandoned
SCORING_ERROR_BUDGET = 3

# Pause between inference attempts
RETRY_DELAY_SECONDS = 1.0

# Score bounds and the neutral score used when scoring output can't be parsed
MIN_SCORE = 1
MAX_SCORE = 10
FALLBACK_SCORE = 5

# ai_category markers
CATEGORY_PERSONALIZED = "personalized"
CATEGORY_PERSONALIZED_FALLBACK = "personalized-fallback"

# Prompt size limits
MAX_SCORING_CONTENT_CHARS = 6000
MAX_FEEDBACK_EXCERPT_CHARS = 400

# Default models per tier
DEFAULT_CHEAP_MODEL = "gemini-2.5-flash-lite"
DEFAULT_CAPABLE_MODEL = "gemini-2.5-flash"
DEFAULT_LLM_TIMEOUT_SECONDS = 30.0

# ai_summary texts for terminal outcomes that don't come from the model
NO_PROFILE_SUMMARY = "No user profile available for scoring"
TOPIC_FILTERED_SUMMARY = "Article not relevant to user topic interests"
FALLBACK_SUMMARY = "Unable to parse AI scoring response - using neutral score"
MANUAL_UPDATE_CHANGELOG = "Profile manually updated by user"
