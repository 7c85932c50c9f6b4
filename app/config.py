"""Expense Bridge — Central Configuration via Pydantic Settings."""

from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables / .env file."""

    # ── Service ──
    app_name: str = "expense-bridge"
    app_version: str = "1.0.0"
    app_id: str = "unknown_app_id"
    health_message: str = "Bitable expense bridge server is running"

    # ── Storage ──
    data_dir: str = "./storage"
    received_data_file: str = "received_data.json"
    processed_records_file: str = "processed_records.json"

    # ── Signature ──
    verification_token: str = "your_verification_token_here"
    require_signature: bool = False  # False keeps unsigned pushes accepted

    # ── Logging ──
    log_level: str = "INFO"
    log_request_bodies: bool = False
    max_body_log_chars: int = 500

    @property
    def received_data_path(self) -> Path:
        return Path(self.data_dir) / self.received_data_file

    @property
    def processed_records_path(self) -> Path:
        return Path(self.data_dir) / self.processed_records_file

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()


def get_settings() -> Settings:
    """Dependency — returns the process-wide settings object."""
    return settings
