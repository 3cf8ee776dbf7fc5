"""Network configuration constants for the quiz portal."""

DEFAULT_HOST: str = "0.0.0.0"
DEFAULT_PORT: int = 8000
SESSION_COOKIE: str = "quiz_portal_session"
SESSION_COOKIE_MAX_AGE_SECONDS: int = 60 * 60 * 6
FINISHED_SESSION_TTL_SECONDS: float = 15 * 60
MAX_ACTIVE_SESSIONS_PER_USER: int = 1
