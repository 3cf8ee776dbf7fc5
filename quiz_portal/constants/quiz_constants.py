"""Quiz-related constants shared across UI, server and core layers."""

OPTION_LABELS: tuple[str, ...] = tuple("ABCDEFGHIJKLMNOPQRSTUVWXYZ")
MIN_OPTION_COUNT: int = 2

SECONDS_PER_MINUTE: int = 60
COUNTDOWN_INTERVAL_SECONDS: float = 1.0
LOW_TIME_WARNING_SECONDS: int = 60

SESSION_CLOSED_MESSAGE: str = "The quiz was closed before it was submitted."
SUBMISSION_FAILED_MESSAGE: str = "Your answers could not be submitted. Please return to the dashboard."
