"""Qt UI constants used across widgets."""

WINDOW_TITLE: str = "Quiz Portal"
LOADING_MESSAGE: str = "Loading quiz…"
NAVIGATOR_TITLE: str = "Question Navigator"
NAVIGATOR_COLUMNS: int = 5
QUESTION_COUNTER_TEMPLATE: str = "Question {number} of {total}"

PREV_BUTTON: str = "Previous"
NEXT_BUTTON: str = "Next"
SUBMIT_BUTTON: str = "Submit Quiz"
RETURN_BUTTON: str = "Return to Dashboard"

SUBMIT_DIALOG_TITLE: str = "Submit Quiz?"
SUBMIT_DIALOG_TEXT: str = (
    "Are you sure you want to submit your answers? "
    "You won't be able to change them after submission."
)
UNANSWERED_WARNING_TEMPLATE: str = "You have {count} unanswered question(s)."
TIME_UP_TITLE: str = "Time's up!"
TIME_UP_MESSAGE: str = "Your answers have been automatically submitted."

SUBMITTING_MESSAGE: str = "Submitting your answers…"
RESULT_TITLE: str = "Quiz Complete!"
RESULT_SCORE_TEMPLATE: str = "You answered {score} out of {total} questions correctly."
RESULT_PENDING_MESSAGE: str = "Your answers were submitted. Results will be published later."
QUIZ_NOT_FOUND_TITLE: str = "Quiz not found"
QUIZ_LOAD_FAILED_MESSAGE: str = "The quiz could not be loaded. Please try again later."
