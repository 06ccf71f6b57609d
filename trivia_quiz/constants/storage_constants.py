"""Keys used for device-local persistence."""

HISTORY_STORAGE_KEY: str = "history/attempts"
RECENT_ATTEMPTS_LIMIT: int = 5
