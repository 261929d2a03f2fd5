from typing import Optional
from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import PostgresDsn


class PostgresSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )
    host: str = Field(alias="POSTGRES_HOST")
    port: int = Field(alias="POSTGRES_DB_PORT")
    db_name: str = Field(alias="POSTGRES_DB_NAME")
    user: str = Field(alias="POSTGRES_DB_USER")
    password: str = Field(alias="POSTGRES_DB_PASSWORD")

    @computed_field
    def connection_string(self) -> PostgresDsn:
        return PostgresDsn(
            f"postgresql+asyncpg://{self.user}:{self.password}@{self.host}:{self.port}/{self.db_name}"
        )


class OpenRouterSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )
    api_key: Optional[str] = Field(default=None, alias="OPENROUTER_API_KEY")
    base_url: str = Field(
        default="https://openrouter.ai/api/v1", alias="OPENROUTER_BASE_URL"
    )
    timeout_seconds: float = Field(default=60.0, alias="OPENROUTER_TIMEOUT_SECONDS")
    max_retries: int = Field(default=3, alias="OPENROUTER_MAX_RETRIES")
    retry_delay_seconds: float = Field(
        default=1.0, alias="OPENROUTER_RETRY_DELAY_SECONDS"
    )
    # Sent as HTTP-Referer / X-Title for the provider's app attribution
    site_url: str = Field(default="https://localhost", alias="SITE")
    app_title: str = Field(default="10x Flashcards App", alias="OPENROUTER_APP_TITLE")


class GenerationSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )
    model: str = Field(default="openai/gpt-4o-mini", alias="GENERATION_MODEL")
    timeout_seconds: float = Field(default=90.0, alias="GENERATION_TIMEOUT_SECONDS")


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )
    name: str = Field(default="ai-flashcards", alias="APP_NAME")
    version: str = Field(default="v1", alias="API_VERSION")
    port: int = Field(default=9000, alias="APP_PORT")
    mode: str = Field(default="prod", alias="MODE")
    jwt_secret: str = Field(alias="JWT_SECRET")
    jwt_lifetime_seconds: int = Field(
        default=3600, alias="JWT_TOKEN_LIFETIME_SECONDS"
    )

    @computed_field
    def is_production(self) -> bool:
        return self.mode != "dev"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    app: AppSettings = Field(default_factory=lambda: AppSettings())
    postgres: PostgresSettings = Field(default_factory=lambda: PostgresSettings())
    openrouter: OpenRouterSettings = Field(
        default_factory=lambda: OpenRouterSettings()
    )
    generation: GenerationSettings = Field(
        default_factory=lambda: GenerationSettings()
    )


settings = Settings()
