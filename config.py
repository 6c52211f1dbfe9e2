import hashlib
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# Paths
BASE_DIR = Path(__file__).parent
DATA_DIR = Path(os.getenv("DATA_DIR", BASE_DIR / "data"))

# Site metadata
SITE_TITLE = "Link"
SITE_DESCRIPTION = "Because I was bored."
HOME_POST_COUNT = 5

# Auth / session
DEFAULT_PASSWORD_HASH = hashlib.sha256(b"changeme").hexdigest()
ADMIN_PASSWORD_HASH = os.getenv("ADMIN_PASSWORD_HASH") or DEFAULT_PASSWORD_HASH
AUTH_COOKIE_NAME = "session"
SESSION_LIFETIME = int(os.getenv("SESSION_LIFETIME", "3600"))
SESSION_SWEEP_INTERVAL = int(os.getenv("SESSION_SWEEP_INTERVAL", "3600"))
SESSION_SWEEP_ENABLED = True

# Server
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
HOST = os.getenv("HOST", "127.0.0.1")
PORT = int(os.getenv("PORT", "3001"))
