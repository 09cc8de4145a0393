import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# -----------------------------
# Load environment variables
# -----------------------------
load_dotenv()

BASE_DIR = Path(__file__).resolve().parent

FIREBASE_CREDENTIALS_PATH = os.getenv("FIREBASE_CREDENTIALS_PATH", "")
FIREBASE_PROJECT_ID = os.getenv("FIREBASE_PROJECT_ID", "")

# username:pin pairs, comma separated
POS_USERS = os.getenv("POS_USERS", "admin:123456,manager:654321")
POS_TIMEZONE = os.getenv("POS_TIMEZONE", "Europe/Istanbul")
POS_APP_SLUG = os.getenv("POS_APP_SLUG", "gato-coffee")

MENU_FILE = Path(os.getenv("POS_MENU_FILE", str(BASE_DIR / "menu.json")))
SESSION_FILE = Path(os.getenv("POS_SESSION_FILE", ".pos_session.json"))

API_URL = os.getenv("POS_API_URL", "http://127.0.0.1:8000")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

ORDERS_COLLECTION = "orders"
AGGREGATES_COLLECTION = "monthlyAggregates"

NOTE_MAX_LENGTH = 300
MAX_RANGE_DAYS = 186
TOP_PRODUCTS = 10
TOP_PRODUCTS_PER_DAY = 5


@dataclass(frozen=True)
class Settings:
    """Immutable snapshot of the runtime configuration."""
    firebase_credentials_path: str = FIREBASE_CREDENTIALS_PATH
    firebase_project_id: str = FIREBASE_PROJECT_ID
    users: str = POS_USERS
    timezone: str = POS_TIMEZONE
    app_slug: str = POS_APP_SLUG
    menu_file: Path = MENU_FILE
    session_file: Path = SESSION_FILE
    api_url: str = API_URL
    log_level: str = LOG_LEVEL

    @property
    def firestore_enabled(self) -> bool:
        return bool(self.firebase_credentials_path or self.firebase_project_id)


def get_settings() -> Settings:
    return Settings()
