import os
from decimal import Decimal
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

DEFAULT_CATALOG_PATH = Path(__file__).parent / "data" / "catalog.json"


class Config:
    # Catalog source ("bundled" JSON file or one-shot "supabase" snapshot)
    CATALOG_SOURCE = os.getenv("CATALOG_SOURCE", "bundled")
    CATALOG_PATH = os.getenv("CATALOG_PATH", str(DEFAULT_CATALOG_PATH))

    # Supabase (remote catalog tables)
    SUPABASE_URL = os.getenv("SUPABASE_URL")
    SUPABASE_KEY = os.getenv("SUPABASE_KEY")

    # Saved configurations and quotes (SQLite)
    DB_PATH = os.getenv("CONFIGURATOR_DB_PATH", "./configurator.db")

    # Pricing
    TAX_RATE = Decimal(os.getenv("TAX_RATE", "0.08"))
    QUOTE_VALIDITY_DAYS = int(os.getenv("QUOTE_VALIDITY_DAYS", "30"))

    # Open wizard sessions idle longer than this are dropped
    SESSION_IDLE_MINUTES = int(os.getenv("SESSION_IDLE_MINUTES", "60"))

    # API Server
    API_HOST = os.getenv("API_HOST", "127.0.0.1")
    API_PORT = int(os.getenv("API_PORT", "8000"))

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    @staticmethod
    def validate():
        """Ensure required settings are present for the chosen catalog source"""
        if Config.CATALOG_SOURCE not in ("bundled", "supabase"):
            raise EnvironmentError(f"Unknown CATALOG_SOURCE: '{Config.CATALOG_SOURCE}'")

        missing = []
        if Config.CATALOG_SOURCE == "supabase":
            if not Config.SUPABASE_URL:
                missing.append("SUPABASE_URL")
            if not Config.SUPABASE_KEY:
                missing.append("SUPABASE_KEY")

        if missing:
            raise EnvironmentError(f"Missing required environment variables: {', '.join(missing)}")

        return True
