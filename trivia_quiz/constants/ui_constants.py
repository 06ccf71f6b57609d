"""Qt UI constants used across widgets."""

WINDOW_TITLE: str = "TriviaQuiz"
WELCOME_TITLE: str = "Ready for a quick quiz?"
WELCOME_LOADING: str = "Loading questions…"
WELCOME_READY_TEMPLATE: str = "{count} questions ready ({tier})"
PLAYER_URL_TEMPLATE: str = "Play from a browser: {url}"

START_BUTTON: str = "Start"
NEXT_BUTTON: str = "Next"
FINISH_BUTTON: str = "See results"
RESTART_BUTTON: str = "Play again"

QUESTION_NUMBER_TEMPLATE: str = "Question {number} of {total}"
SCORE_TEMPLATE: str = "Score: {score}"
TIMER_TEMPLATE: str = "{seconds}s"
TIMER_EXPIRED: str = "Time is up"

FIRST_ATTEMPT_TEXT: str = "First attempt"
ATTEMPT_STATS_TEMPLATE: str = "Attempt {count} | Best: {best} | Average: {average}"

LOAD_FAILED_TITLE: str = "Cannot start"
LOAD_FAILED_MESSAGE: str = "No questions could be loaded. Check your connection and press Start to try again."

SAVING_RESULT_TEXT: str = "Saving your score…"
RECENT_ATTEMPTS_TITLE: str = "Recent attempts"
RECENT_ATTEMPT_TEMPLATE: str = "{when}  {score} points"
RECENT_ATTEMPT_TIME_FORMAT: str = "%Y-%m-%d %H:%M"
CLEAR_HISTORY_BUTTON: str = "Clear history on this device"
HISTORY_CLEARED_TITLE: str = "History cleared"
HISTORY_CLEARED_MESSAGE: str = "Attempts stored on this device were removed."
