# homeservice_admin/config.py
import os
import logging
from pathlib import Path
from dotenv import load_dotenv
from typing import List

# Load environment variables
load_dotenv()

# Base directory of the project
BASE_DIR = Path(__file__).resolve().parent.parent

# Values of the marketplace `lang` parameter
SUPPORTED_LANGUAGES = ("ENGLISH", "AMHARIC", "OROMO")

def language_setting(name: str, default: str) -> str:
    """Read a language code from the environment, failing fast on unknown codes"""
    value = os.getenv(name, default).strip().upper()
    if value not in SUPPORTED_LANGUAGES:
        raise ValueError(f"{name} must be one of {', '.join(SUPPORTED_LANGUAGES)}, got {value!r}")
    return value

class Config:
    """Configuration settings for the admin bot"""

    # Bot settings
    TELEGRAM_TOKEN: str = os.getenv("TELEGRAM_TOKEN")
    if not TELEGRAM_TOKEN:
        raise ValueError("No TELEGRAM_TOKEN set in environment")

    # Marketplace API settings
    API_URL: str = os.getenv("API_URL", "https://hulumoya.zapto.org").rstrip("/")
    API_FILE_URL: str = os.getenv("API_FILE_URL", API_URL).rstrip("/")
    API_TOKEN: str = os.getenv("API_TOKEN", "")

    # Admin settings
    ADMIN_IDS: List[int] = [
        int(id_) for id_ in os.getenv("ADMIN_IDS", "").split(",")
        if id_.strip().isdigit()
    ]

    # Other settings
    DEFAULT_LANGUAGE: str = language_setting("DEFAULT_LANGUAGE", "ENGLISH")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Paths
    LOG_DIR = BASE_DIR / "logs"

    # Ensure directories exist
    LOG_DIR.mkdir(exist_ok=True)

def setup_logging():
    """Configure logging settings"""
    log_format = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    log_file = Config.LOG_DIR / "bot.log"

    logging.basicConfig(
        level=getattr(logging, Config.LOG_LEVEL),
        format=log_format,
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler()
        ]
    )
    # httpx (used by python-telegram-bot) logs every poll at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
