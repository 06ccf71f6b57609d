"""Static metadata describing the trivia quiz."""

APP_NAME = "TriviaQuiz"
APP_ORGANIZATION = "TriviaQuiz"
APP_VERSION = "0.1"
APP_LICENSE = "MIT License"
APP_ABOUT_TEXT = (
    "TriviaQuiz is a timed multiple-choice quiz with voice narration. "
    "Play from the desktop window or from any browser on the local network; "
    "scores are stored online when a backend is configured and on this device otherwise."
)
