"""Quiz-related constants shared across UI and core layers."""

from pathlib import Path

OPTION_LABELS: tuple[str, ...] = ("A", "B", "C")
POINTS_PER_QUESTION: int = 10

DEFAULT_TIME_LIMIT_SECONDS: int = 10
TICK_INTERVAL_MS: int = 1000
WARNING_THRESHOLD_SECONDS: int = 5
CRITICAL_THRESHOLD_SECONDS: int = 3

PROMPT_NARRATION_DELAY_MS: int = 500
FEEDBACK_NARRATION_DELAY_MS: int = 300
REVEAL_CORRECT_DELAY_MS: int = 300

HIGH_SCORE_THRESHOLD: int = 80
MIDDLE_SCORE_THRESHOLD: int = 50
HIGH_SCORE_MESSAGE: str = "Outstanding! You know this material better than you think."
MIDDLE_SCORE_MESSAGE: str = "Good going. There is still plenty left to discover."
LOW_SCORE_MESSAGE: str = "The score matters less than the fun. Have another go!"

CORRECT_ANSWER_NARRATION: str = "Well done, that is right."
INCORRECT_ANSWER_NARRATION: str = "Not quite. It was {answer}"
TIMEOUT_NARRATION: str = "Time is up. The answer is: {answer}"
RESULT_NARRATION: str = "You scored {score} points. {message}"

QUESTIONS_CONTAINER_FIELD: str = "questions"
DEFAULT_QUESTIONS_FILE: Path = Path(__file__).resolve().parent.parent / "data" / "questions.json"

TICK_TONE_FREQUENCY_HZ: int = 800
TICK_TONE_DURATION_MS: int = 100
TICK_TONE_VOLUME: float = 0.3
