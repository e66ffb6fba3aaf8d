"""Central configuration for the Gigboard application.

Values are read from environment variables (and a local .env file, if
present) with safe defaults for local development. For production, set
variables explicitly to avoid surprises.
"""
import os

from dotenv import load_dotenv

load_dotenv()

# Database configuration
MONGODB_URI: str = os.getenv("MONGODB_URI", "mongodb://localhost:27017")
DATABASE_NAME: str = os.getenv("DATABASE_NAME", "gigboard")

# Listing discovery
DEFAULT_PAGE_SIZE: int = int(os.getenv("DEFAULT_PAGE_SIZE", "20"))
MAX_PAGE_SIZE: int = int(os.getenv("MAX_PAGE_SIZE", "100"))
MAX_PAGE: int = int(os.getenv("MAX_PAGE", "1000"))
# How many candidates per requested slot are read when a price bound is set
PRICE_OVERFETCH_FACTOR: int = int(os.getenv("PRICE_OVERFETCH_FACTOR", "5"))

# Client side (listing view)
API_BASE_URL: str = os.getenv("API_BASE_URL", "http://localhost:8000/api")
API_TIMEOUT: float = float(os.getenv("API_TIMEOUT", "30"))
RENDER_BATCH_SIZE: int = int(os.getenv("RENDER_BATCH_SIZE", "12"))
RENDER_FRAME_INTERVAL: float = float(os.getenv("RENDER_FRAME_INTERVAL", str(1 / 60)))
RATING_POLL_INTERVAL: float = float(os.getenv("RATING_POLL_INTERVAL", "3"))

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
# Comma separated; "*" allows any origin
CORS_ORIGINS: list[str] = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
