from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite+aiosqlite:///./local_dev.db"

    # ─── GitHub ─────────────────────────────────────────
    GITHUB_TOKEN: str = ""
    GITHUB_WEBHOOK_SECRET: str = ""
    GITHUB_API_URL: str = "https://api.github.com"
    GITHUB_TIMEOUT_SECONDS: float = 15.0
    GITHUB_MAX_RETRIES: int = 2

    # ─── Summarization / Embeddings ─────────────────────
    GROQ_API_KEY: str = ""
    DEFAULT_MODEL_GROQ: str = "llama-3.3-70b-versatile"
    SUMMARY_MAX_INPUT_CHARS: int = 12000

    OPENROUTER_API_KEY: str = ""
    EMBEDDING_BASE_URL: str = "https://openrouter.ai/api/v1"
    EMBEDDING_MODEL: str = "openai/text-embedding-3-small"
    EMBEDDING_DIMENSIONS: int = 768
    EMBEDDING_TIMEOUT_SECONDS: float = 30.0

    # ─── Job Queue ──────────────────────────────────────
    # "inprocess" runs handlers on asyncio workers; "http" posts to an external event bus.
    JOB_QUEUE_BACKEND: str = "inprocess"
    EVENT_BUS_URL: str = ""
    JOB_WORKERS: int = 2
    JOB_MAX_RETRIES: int = 1
    JOB_RETRY_BACKOFF_SECONDS: float = 2.0

    # ─── Re-indexing Policy ─────────────────────────────
    REINDEX_BATCH_SIZE: int = 3
    REINDEX_BATCH_DELAY_SECONDS: float = 2.0
    # More changed files than this → full smart re-index
    REINDEX_FILE_THRESHOLD: int = 10
    LOGS_MERGE_MAX_ATTEMPTS: int = 3

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

@lru_cache
def get_settings():
    return Settings()
