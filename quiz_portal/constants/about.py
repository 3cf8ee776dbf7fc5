"""Static metadata describing the quiz portal."""

APP_NAME = "Quiz Portal"
APP_VERSION = "0.2"
APP_LICENSE = "MIT License"
APP_ABOUT_TEXT = (
    "Quiz Portal lets students take timed multiple-choice quizzes from the browser "
    "or from a desktop window. Answers are submitted once, either by the student "
    "or automatically when the timer runs out."
)

HELP_TEXT = (
    "Question banks are plain text files, one block per question:\n\n"
    "Q: What is $2 + 2$?\n"
    "A: 3\nB: 4\nC: 5\n"
    "CORRECT: B\n\n"
    "Blocks are separated by a blank line or '---'. Use ID: to give a question a fixed identifier."
)
