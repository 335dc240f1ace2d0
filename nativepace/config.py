"""
Configuration settings for the nativepace progress engine.

Uses Pydantic Settings for environment variable management with .env file support.
Every tunable constant of the engine lives here so product changes do not
require code changes.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine settings loaded from environment variables (NATIVEPACE_*)."""

    model_config = SettingsConfigDict(
        env_prefix="NATIVEPACE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Answer Matching
    # ========================================
    answer_similarity_threshold: int = Field(
        default=85,
        description="Minimum similarity (0-100) for a dictation answer to be accepted",
    )
    char_similarity_weight: float = Field(
        default=0.7,
        description="Weight of character similarity in the combined score",
    )
    token_similarity_weight: float = Field(
        default=0.3,
        description="Weight of token similarity in the combined score",
    )

    # ========================================
    # Quality Mapping
    # ========================================
    quality_average_time_ms: int = Field(
        default=5000,
        description="Expected response time used to grade answer speed",
    )
    quality_fast_ratio: float = Field(
        default=0.4,
        description="Response/expected ratio at or below which quality is 5",
    )
    quality_normal_ratio: float = Field(
        default=0.8,
        description="Response/expected ratio at or below which quality is 4",
    )
    min_response_time_ms: int = Field(
        default=500,
        description="Response times below this are raised to it",
    )
    max_response_time_ms: int = Field(
        default=60000,
        description="Response times above this are capped to it",
    )

    # ========================================
    # Mastery
    # ========================================
    mastery_weight_comparison: int = Field(default=5, description="Mastery weight for comparison")
    mastery_weight_discrimination: int = Field(
        default=10, description="Mastery weight for discrimination"
    )
    mastery_weight_dictation: int = Field(default=15, description="Mastery weight for dictation")
    mastery_weight_speed: int = Field(default=10, description="Mastery weight for speed training")
    mastery_learned_threshold: int = Field(
        default=50,
        description="Mastery at which a pattern counts as learned",
    )
    mastery_mastered_threshold: int = Field(
        default=80,
        description="Mastery at which a pattern is displayed as mastered",
    )

    # ========================================
    # Spaced Repetition (SM-2)
    # ========================================
    sm2_default_ease_factor: float = Field(
        default=2.5,
        description="Ease factor for a pattern's first review",
    )
    sm2_min_ease_factor: float = Field(
        default=1.3,
        description="Floor for the ease factor",
    )
    sm2_first_interval_days: int = Field(
        default=1,
        description="Interval after the first successful repetition",
    )
    sm2_second_interval_days: int = Field(
        default=6,
        description="Interval after the second successful repetition",
    )

    # ========================================
    # Review Queue
    # ========================================
    due_patterns_limit: int = Field(
        default=20,
        description="Maximum due patterns offered in one review queue",
    )
    new_patterns_limit: int = Field(
        default=5,
        description="Maximum unseen patterns offered per level",
    )
    review_pass_ratio: float = Field(
        default=0.5,
        description="Fraction of correct exercises needed to pass a pattern in review",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging verbosity level",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (None for stderr only)",
    )

    def get_mastery_weights(self) -> dict[str, int]:
        """Get mastery weights keyed by exercise type value."""
        return {
            "comparison": self.mastery_weight_comparison,
            "discrimination": self.mastery_weight_discrimination,
            "dictation": self.mastery_weight_dictation,
            "speed": self.mastery_weight_speed,
        }

    def get_quality_config(self) -> dict[str, float]:
        """Get quality mapping configuration as a dictionary."""
        return {
            "average_time_ms": self.quality_average_time_ms,
            "fast_ratio": self.quality_fast_ratio,
            "normal_ratio": self.quality_normal_ratio,
            "min_response_time_ms": self.min_response_time_ms,
            "max_response_time_ms": self.max_response_time_ms,
        }

    def get_sm2_config(self) -> dict[str, float]:
        """Get SM-2 scheduler configuration as a dictionary."""
        return {
            "default_ease_factor": self.sm2_default_ease_factor,
            "min_ease_factor": self.sm2_min_ease_factor,
            "first_interval_days": self.sm2_first_interval_days,
            "second_interval_days": self.sm2_second_interval_days,
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
