"""Configuration constants for the chat engine.

Centralizes the numbers that govern a conversational turn: admission limits,
context windowing, sponsor gating, completion policy, typing pacing and
suggestion generation.
"""

# Turn admission
MAX_MESSAGE_LENGTH = 1000  # Characters accepted at the Idle boundary

# Context windowing
DEFAULT_CONTEXT_LIMIT = 10  # Raw turns kept verbatim before summarizing
SUMMARY_TURN_CHARS = 100  # Characters kept per summarized turn
SUMMARY_SEPARATOR = " | "
SUMMARY_PREFIX = "Previous conversation summary: "

# Sponsor gating
SPONSOR_PROBABILITY = 0.7
SPONSOR_COUNTDOWN_SECONDS = 10
SPONSOR_MIN_PRIOR_TURNS = 1

# Completion policy
COMPLETION_TIMEOUT_SECONDS = 20.0
COMPLETION_MAX_RETRIES = 1
COMPLETION_MAX_INPUT_LENGTH = 2000  # Provider-side input limit
COMPLETION_TEMPERATURE = 0.3
COMPLETION_MAX_TOKENS = 800
RETRY_BACKOFF_BASE_SECONDS = 1.0
RETRY_BACKOFF_CAP_SECONDS = 5.0

# Client-side rate limiting (sliding window)
RATE_LIMIT_MAX_REQUESTS = 60
RATE_LIMIT_WINDOW_SECONDS = 60.0

# Typing animation pacing, in seconds: (minimum, span)
TYPING_CHUNK_MIN = 1
TYPING_CHUNK_MAX = 3
TYPING_BASE_DELAY = (0.015, 0.030)
TYPING_SENTENCE_DELAY = (0.300, 0.400)
TYPING_CLAUSE_DELAY = (0.150, 0.200)
SENTENCE_END_CHARS = frozenset(".!?")
CLAUSE_END_CHARS = frozenset(",:;")

# Follow-up suggestions
SUGGESTION_COUNT = 3
SUGGESTION_MAX_COUNT = 4
SUGGESTION_CONTEXT_TURNS = 3
SUGGESTION_TIMEOUT_SECONDS = 15.0
SUGGESTION_MAX_TOKENS = 150
SUGGESTION_TEMPERATURE = 0.7
SUGGESTION_LINE_MAX_CHARS = 50

# User-visible notices
TOAST_SECONDS = 5.0
TOAST_RATE_LIMIT_SECONDS = 8.0

# Default welcome line; {tool_name} is substituted
WELCOME_TEMPLATE = "👋 Hi! I'm ready to help you with {tool_name}. What would you like me to do?"
