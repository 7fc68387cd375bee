"""
Configuration settings for the Semantic Movie Search workshop.
This module manages all environment variables and application settings.
"""

from pathlib import Path
from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Main settings class for Semantic Movie Search."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore"
    )

    # Project settings
    PROJECT_NAME: str = "Semantic Movie Search"

    # Paths
    PROJECT_ROOT: Path = Path(__file__).parent.parent.parent
    LOGS_DIR: Path = PROJECT_ROOT / "logs"
    SEARCH_CONFIG_PATH: str = Field(default="config/search.yaml")

    # Database settings (MongoDB Atlas)
    MONGODB_URI: str = Field(default="mongodb+srv://<username>:<password>@<cluster>.mongodb.net/?retryWrites=true&w=majority")
    DATABASE_NAME: str = Field(default="sample_mflix")
    COLLECTION_NAME: str = Field(default="embedded_movies")

    # MongoDB Atlas Vector Search settings
    VECTOR_INDEX_NAME: str = Field(default="vector_index")
    VECTOR_FIELD_PATH: str = Field(default="plot_embedding")
    VECTOR_DIMENSIONS: int = Field(default=1536, ge=1)  # text-embedding-ada-002
    VECTOR_SIMILARITY: str = Field(default="cosine")

    # Embedding settings. The model must be the one the stored plot
    # embeddings were produced with.
    EMBEDDING_PROVIDER: str = Field(default="openai")
    EMBEDDING_MODEL: str = Field(default="text-embedding-ada-002")
    OPENAI_API_KEY: Optional[str] = Field(default=None)
    OPENAI_BASE_URL: Optional[str] = Field(default=None)

    # Timeouts for the two external calls
    EMBEDDING_TIMEOUT_SECONDS: float = Field(default=30.0, gt=0)
    SEARCH_TIMEOUT_SECONDS: float = Field(default=30.0, gt=0)

    # Logging settings
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


# Global settings instance
settings = Settings()