"""Configuration for the HTTP adapter layer."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Settings loaded from environment variables."""

    # Server Configuration
    host: str = "0.0.0.0"
    port: int = 8383

    # Logging Configuration
    log_level: str = "INFO"
    json_logs: bool = False

    # Error Rendering
    # Include trimmed tracebacks in 500 response bodies. Keep off in production.
    expose_error_stack: bool = False
    # Call breakpoint() whenever an unclassified exception reaches the translator.
    break_on_unhandled: bool = False

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


settings = Settings()
