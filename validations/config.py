import os
import logging
from pathlib import Path
from dotenv import load_dotenv, find_dotenv

# Load environment variables from .env file
load_dotenv(find_dotenv())

PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Provider Selection ("sqlite" or "mongodb", anything else falls back to sqlite)
DB_PROVIDER = os.getenv("DB_PROVIDER", "sqlite")

# SQLite Settings
DB_PATH = os.getenv("DB_PATH", str(PROJECT_ROOT / "data" / "validations.db"))
SQLITE_RETENTION_DAYS = int(os.getenv("SQLITE_RETENTION_DAYS", 7))

# MongoDB Settings
MONGO_URI = os.getenv("MONGO_URI")  # None -> driver default (localhost:27017)
MONGO_DB_NAME = os.getenv("MONGO_DB_NAME", "validations")
MONGO_COLLECTION_NAME = os.getenv("MONGO_COLLECTION_NAME")
MONGO_RETENTION_SECONDS = int(os.getenv("MONGO_RETENTION_SECONDS", 86400))

# Share links
PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL")

# Logging Configuration
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def setup_logging():
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )
