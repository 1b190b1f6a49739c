"""Configuration settings for the application."""

from pydantic_settings import BaseSettings

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful AI assistant controlling a 3D world in a game. You can interact with the "
    "user through chat and use available tools to modify the world. Be descriptive and engaging."
)


class Settings(BaseSettings):
    """Pydantic settings class for the application."""

    # Define the settings with default values and types
    # These will be loaded from environment variables or a .env file if not provided
    API_PORT: int = 8000
    DEBUG: bool = True
    LOG_LEVEL: str = "info"  # Options: debug, info, warning, error, critical

    # Inference engine
    ENGINE: str = "local"  # Options: local, openai, anthropic
    MODEL: str = "Qwen2.5-Coder-7B-Instruct"
    OPENAI_API_KEY: str | None = None
    ANTHROPIC_API_KEY: str | None = None
    LOCAL_ENDPOINT: str = "http://localhost:8080/v1"
    REQUEST_TIMEOUT: float = 120.0

    # Turn handling
    TEMPERATURE: float = 0.7
    RETRY_LIMIT: int = 2
    RETRY_DELAY: float = 0.5  # seconds between retries
    SYNTHESIS_TEMPERATURE: float = 0.5
    SYSTEM_PROMPT: str = DEFAULT_SYSTEM_PROMPT

    class Config:
        """Configuration for Pydantic settings."""

        # Load environment variables from a .env file
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
