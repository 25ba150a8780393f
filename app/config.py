from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PATH = Path(__file__).resolve().parent.parent / ".env.local"


class Settings(BaseSettings):
    # Environment settings
    environment: str = "development"
    debug: bool = False
    LOG_LEVEL: str = "INFO"

    # Neo4j settings
    NEO4J_URI: str = "bolt://localhost:7687"
    NEO4J_USERNAME: str = "neo4j"
    NEO4J_PASSWORD: str | None = None
    NEO4J_DATABASE: str = "neo4j"
    NEO4J_MAX_CONNECTION_POOL_SIZE: int = 50
    NEO4J_CONNECTION_TIMEOUT: float = 30.0
    NEO4J_CONNECTION_ACQUISITION_TIMEOUT: float = 30.0
    NEO4J_ENSURE_SCHEMA: bool = False

    # =================================================================
    # REQUEST LIMITS
    # =================================================================
    PAGINATION_MAX_PAGE: int = 10000
    PAGINATION_MAX_LIMIT: int = 100
    PAGINATION_DEFAULT_LIMIT: int = 20
    SEARCH_QUERY_MAX_LENGTH: int = 200

    # Conditional GET / caching
    ETAGS_ENABLED: bool = True
    ANALYTICS_CACHE_MAX_AGE: int = 300  # seconds

    # Heatmap bucketing timezone
    ANALYTICS_TIMEZONE: str = "UTC"

    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def get_neo4j_driver_config(self) -> dict:
        """
        Get Neo4j driver pool configuration.
        Adjust environment-specific settings based on self.environment.
        """
        config = {
            "max_connection_pool_size": self.NEO4J_MAX_CONNECTION_POOL_SIZE,
            "connection_timeout": self.NEO4J_CONNECTION_TIMEOUT,
            "connection_acquisition_timeout": self.NEO4J_CONNECTION_ACQUISITION_TIMEOUT,
        }

        if self.environment == "development":
            # Smaller pool for local development
            config.update(
                {
                    "max_connection_pool_size": min(self.NEO4J_MAX_CONNECTION_POOL_SIZE, 10),
                    "connection_timeout": 15.0,
                }
            )

        return config

    def get_pagination_config(self) -> dict:
        return {
            "max_page": self.PAGINATION_MAX_PAGE,
            "max_limit": self.PAGINATION_MAX_LIMIT,
            "default_limit": self.PAGINATION_DEFAULT_LIMIT,
        }


settings = Settings()
