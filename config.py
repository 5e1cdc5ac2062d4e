import os
from dotenv import load_dotenv
from dataclasses import dataclass
from functools import lru_cache

load_dotenv()


def _parse_bool(value: str, default: bool = False) -> bool:
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    # MongoDB
    MONGO_URI: str
    MONGO_DB: str
    MONGO_TIMEOUT_MS: int

    # ledger
    CHAIN_NAME: str
    CHAIN_ID: int
    BLOCK_GAS_LIMIT: int
    GENESIS_TIMESTAMP: int
    BLOCK_TIME_SEC: int

    # persistence
    PERSIST_EVENTS: bool
    RESTORE_SNAPSHOT_ON_START: bool

    # generic
    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"


@lru_cache()
def get_settings() -> Settings:
    return Settings(
        # Mongo
        MONGO_URI=os.getenv("MONGO_URI", "mongodb://mongo-wrapper:27017/wrapper_ledger"),
        MONGO_DB=os.getenv("MONGO_DB", "wrapper_ledger"),
        MONGO_TIMEOUT_MS=int(os.getenv("MONGO_TIMEOUT_MS", "5000")),

        # Ledger
        CHAIN_NAME=os.getenv("CHAIN_NAME", "devnet").strip().lower(),
        CHAIN_ID=int(os.getenv("CHAIN_ID", "31337")),
        BLOCK_GAS_LIMIT=int(os.getenv("BLOCK_GAS_LIMIT", "30000000")),
        GENESIS_TIMESTAMP=int(os.getenv("GENESIS_TIMESTAMP", "1700000000")),
        BLOCK_TIME_SEC=int(os.getenv("BLOCK_TIME_SEC", "12")),

        PERSIST_EVENTS=_parse_bool(os.getenv("PERSIST_EVENTS", ""), default=True),
        RESTORE_SNAPSHOT_ON_START=_parse_bool(os.getenv("RESTORE_SNAPSHOT_ON_START", ""), default=False),

        ENV=os.getenv("ENV", "dev"),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO"),
    )
