"""Network configuration constants for the trivia quiz."""

DEFAULT_HOST: str = "0.0.0.0"
DEFAULT_PORT: int = 8000
REMOTE_TIMEOUT_SECONDS: float = 5.0

QUESTIONS_TABLE: str = "questions"
ATTEMPTS_TABLE: str = "attempts"
GLOBAL_STATS_RPC: str = "get_global_stats"
