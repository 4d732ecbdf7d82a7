import os
from pathlib import Path

# --------------------------
# App
# --------------------------
APP_TITLE = "Issho"
APP_ICON = "📺"

# --------------------------
# Storage
# --------------------------
DATA_DIR = Path(os.environ.get("ISSHO_DATA_DIR", "data"))
AVATAR_DIR_NAME = "avatars"

# --------------------------
# Logging
# --------------------------
LOG_LEVEL = os.environ.get("ISSHO_LOG_LEVEL", "INFO")
LOG_FILE = os.environ.get("ISSHO_LOG_FILE", "issho.log")

# --------------------------
# Limits
# --------------------------
PAGE_SIZE = 10                # feed page size
COMMENT_MAX_CHARS = 2000
BIO_MAX_CHARS = 500
USERNAME_MIN_CHARS = 3
USERNAME_MAX_CHARS = 20
PASSWORD_MIN_CHARS = 6
USER_SEARCH_MIN_CHARS = 2
USER_SEARCH_LIMIT = 10
ANIME_SEARCH_LIMIT = 20
RATING_MIN = 1
RATING_MAX = 10

# --------------------------
# Jikan (MyAnimeList) catalog
# --------------------------
JIKAN_BASE_URL = "https://api.jikan.moe/v4"
JIKAN_RATE_LIMIT_DELAY = 1.0  # seconds between requests; Jikan allows ~3/s
JIKAN_TIMEOUT = 10
JIKAN_MAX_LIMIT = 25
ANIME_STALE_DAYS = 7
