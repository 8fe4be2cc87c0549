"""
Configuration management for ResumeMatch.

Uses Pydantic Settings for type-safe configuration with environment variable support.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from resume_match.utils import constants


# Base paths
ROOT_DIR = Path(__file__).parent.parent.parent
PACKAGE_DIR = ROOT_DIR / "resume_match"
DATA_DIR = ROOT_DIR / "data"


class DatabaseSettings(BaseSettings):
    """MongoDB document store configuration."""

    model_config = SettingsConfigDict(env_prefix="DB_")

    host: str = "localhost"
    port: int = 27017
    name: str = "resume_match"
    username: str | None = None
    password: str | None = None

    documents_collection: str = "documents"
    job_descriptions_collection: str = "job_descriptions"


class VectorStoreSettings(BaseSettings):
    """Vector index configuration."""

    model_config = SettingsConfigDict(env_prefix="VECTOR_")

    provider: Literal["chromadb", "memory"] = "chromadb"
    persist_directory: Path = DATA_DIR / "vectors"
    collection_name: str = "document_chunks"

    # Metric used by the in-memory store; chromadb reports its own
    memory_metric: Literal["cosine", "euclidean", "dotproduct"] = "cosine"

    # Relaxed-query and fetch-by-id fallbacks
    fallback_top_k: int = Field(constants.FALLBACK_TOP_K, gt=0)
    max_fetch_chunks: int = Field(constants.MAX_FETCH_CHUNKS, gt=0)


class MLSettings(BaseSettings):
    """Embedding model configuration."""

    model_config = SettingsConfigDict(env_prefix="ML_")

    # Embedding model
    embedding_model: str = "sentence-transformers/all-MiniLM-L6-v2"
    embedding_dimension: int = 384

    # Device settings
    device: Literal["cpu", "cuda", "mps", "auto"] = "auto"

    # Batch processing
    batch_size: int = 32

    @field_validator("device")
    @classmethod
    def validate_device(cls, v: str) -> str:
        """Auto-detect device if set to auto."""
        if v == "auto":
            try:
                import torch

                if torch.cuda.is_available():
                    return "cuda"
                elif torch.backends.mps.is_available():
                    return "mps"
            except ImportError:
                pass
            return "cpu"
        return v


class MatchingSettings(BaseSettings):
    """Scoring weights and empirically tuned matching thresholds."""

    model_config = SettingsConfigDict(env_prefix="MATCH_")

    # Final score weights (must sum to 1)
    weight_semantic: float = constants.DEFAULT_SCORING_WEIGHTS["semantic"]
    weight_keyword: float = constants.DEFAULT_SCORING_WEIGHTS["keyword"]
    weight_years: float = constants.DEFAULT_SCORING_WEIGHTS["years"]

    # Skill matching
    semantic_threshold: float = Field(constants.SEMANTIC_THRESHOLD, ge=0, le=1)
    evidence_threshold: float = Field(constants.EVIDENCE_THRESHOLD, ge=0, le=1)
    skill_target_k: int = Field(constants.SKILL_TARGET_K, gt=0)
    max_concurrent_skills: int = Field(16, gt=0)

    # Semantic scoring
    relevance_threshold: float = Field(constants.RELEVANCE_THRESHOLD, ge=0, le=1)
    semantic_top_k: int = Field(constants.SEMANTIC_TOP_K, gt=0)

    # Diversity selection
    mmr_lambda: float = Field(constants.DEFAULT_MMR_LAMBDA, ge=0, le=1)

    @model_validator(mode="after")
    def validate_weights(self) -> "MatchingSettings":
        """Weights must be non-negative and sum to 1."""
        weights = (self.weight_semantic, self.weight_keyword, self.weight_years)
        if any(w < 0 for w in weights):
            raise ValueError("Match weights must be non-negative")
        if abs(sum(weights) - 1.0) > 1e-6:
            raise ValueError(f"Match weights must sum to 1, got {sum(weights):.4f}")
        return self


class LLMSettings(BaseSettings):
    """Answer generator configuration for question answering."""

    model_config = SettingsConfigDict(env_prefix="LLM_")

    model: str = "gemini-2.5-flash"
    api_key: str | None = None
    max_history_messages: int = Field(constants.QA_MAX_HISTORY_MESSAGES, ge=0)
    qa_top_k: int = Field(constants.QA_TOP_K, gt=0)


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: str = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | {message}"
    file_path: Path = ROOT_DIR / "logs" / "resume_match.log"
    rotation: str = "10 MB"
    retention: str = "30 days"
    console_output: bool = True
    file_output: bool = True


class AppSettings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application metadata
    name: str = constants.APP_NAME
    version: str = constants.VERSION
    description: str = constants.APP_DISPLAY_NAME
    debug: bool = False

    # Environment
    environment: Literal["development", "production", "testing"] = "development"

    # Nested settings
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    vector_store: VectorStoreSettings = Field(default_factory=VectorStoreSettings)
    ml: MLSettings = Field(default_factory=MLSettings)
    matching: MatchingSettings = Field(default_factory=MatchingSettings)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


# Global settings instance (singleton pattern)
_settings: AppSettings | None = None


def get_settings() -> AppSettings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = AppSettings()
    return _settings


def reload_settings() -> AppSettings:
    """Force reload settings from environment."""
    global _settings
    _settings = AppSettings()
    return _settings
