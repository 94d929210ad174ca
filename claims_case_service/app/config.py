# Application Configuration using Pydantic BaseSettings
from pydantic_settings import BaseSettings
from typing import Optional

class AppSettings(BaseSettings):
    # MongoDB
    MONGO_DETAILS: str = "mongodb://mongo:27017"
    DB_NAME: str = "claims_case_db"
    MONGO_TIMEOUT_MS: int = 5000 # server selection / connect / socket timeout
    MONGO_USE_TRANSACTIONS: bool = False # Needs a replica set

    # Auth (token verification only, issuance lives elsewhere)
    JWT_SECRET: str = "change-me"
    JWT_ALGORITHM: str = "HS256"

    # Case workflow
    DEFAULT_LOOKBACK_MONTHS: int = 6
    PAYMENT_TERMS_DAYS: int = 30
    CASE_REFERENCE_PREFIX: str = "CMA"

    # Observability
    LOG_LEVEL: str = "INFO"
    OTEL_EXPORTER_OTLP_TRACES_ENDPOINT: Optional[str] = None
    OTEL_EXPORTER_OTLP_METRICS_ENDPOINT: Optional[str] = None
    OTEL_CONSOLE_EXPORTERS_ENABLED: bool = False
    SERVICE_NAME_API: str = "claims-case-api"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

# Instantiate settings to be imported by other modules
settings = AppSettings()

import logging
logger = logging.getLogger(__name__)
# Avoid logging JWT_SECRET or the Mongo URI (may carry credentials).
logger.info("Application settings module initialized.")
