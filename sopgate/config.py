"""
SOPGate Configuration — pydantic-settings based.

All settings are read from environment variables or .env file.
Every value has a default so the engine runs without any environment.
"""

from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application-wide settings sourced from environment variables."""

    # ── Line context windows ──
    preceding_window: int = Field(
        default=15, ge=0, description="Lines of context kept before each line"
    )
    following_window: int = Field(
        default=30, ge=0, description="Lines of context kept after each line"
    )

    # ── Gating ──
    gating_profile: str = Field(
        default="default",
        description="Gating profile used when a request does not name one ('default' or 'strict')",
    )

    # ── Self-correction ──
    max_correction_iterations: int = Field(
        default=3, ge=1, description="Iteration cap for the self-correction loop"
    )

    # ── Execution ──
    max_workers: int = Field(
        default=4,
        ge=1,
        description="Worker threads used to evaluate categories and correct files in parallel",
    )
    max_file_size_bytes: int = Field(
        default=500_000, description="Max file size to accept (bytes)"
    )

    # ── Server ──
    port: int = Field(default=5001, description="Server port")
    host: str = Field(default="0.0.0.0", description="Server bind host")
    cors_origins: list[str] = Field(
        default=["*"], description="Allowed CORS origins"
    )
    log_level: str = Field(default="INFO", description="Root logging level")

    # ── Audit ──
    audit_log_path: str = Field(
        default="audit.jsonl", description="Path to JSON-lines audit log file"
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "env_prefix": "SOPGATE_",
    }


# Singleton instance — imported by other modules
settings = Settings()
