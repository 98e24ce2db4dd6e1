"""Quiz-related constants shared across the core and API layers."""

QUIZ_LENGTH: int = 15
QUESTION_TIME_LIMIT_SECONDS: int = 30
MAX_ACCURACY_POINTS: int = 1000
MAX_TIME_BONUS_PER_QUESTION: int = 500

SECURITY_CODE_LENGTH: int = 6
MAX_VERIFICATION_ATTEMPTS: int = 2
PENANCE_PRAYER_COUNT: int = 5

LEADERBOARD_DEFAULT_LIMIT: int = 50
SESSION_MAX_AGE_MINUTES: int = 120

PLAYER_NAME_MIN_LENGTH: int = 2
PLAYER_NAME_MAX_LENGTH: int = 50

LOCATIONS: tuple[str, ...] = (
    "Andhra Pradesh", "Arunachal Pradesh", "Assam", "Bihar", "Chhattisgarh", "Goa",
    "Gujarat", "Haryana", "Himachal Pradesh", "Jharkhand", "Karnataka", "Kerala",
    "Madhya Pradesh", "Maharashtra", "Manipur", "Meghalaya", "Mizoram", "Nagaland",
    "Odisha", "Punjab", "Rajasthan", "Sikkim", "Tamil Nadu", "Telangana",
    "Tripura", "Uttar Pradesh", "Uttarakhand", "West Bengal",
)

PENANCE_PRAYER_TEXT: str = (
    "Hail Mary, full of grace, the Lord is with thee. Blessed art thou amongst women, "
    "and blessed is the fruit of thy womb, Jesus. Holy Mary, Mother of God, pray for us "
    "sinners, now and at the hour of our death. Amen."
)
