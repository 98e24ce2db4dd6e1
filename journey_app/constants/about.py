"""Static metadata describing Journey Through Matthew."""

APP_NAME = "Journey Through Matthew"
APP_VERSION = "0.1"
APP_LICENSE = "MIT License"
APP_ABOUT_TEXT = (
    "Journey Through Matthew is a timed trivia game over key events of Matthew's Gospel. "
    "Players register, answer fifteen questions, confirm their security code and "
    "compete on a shared leaderboard."
)
