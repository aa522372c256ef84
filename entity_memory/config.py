"""
Configuration for the entity memory graph.

Supports loading from:
1. Environment variables (highest priority)
2. YAML config file
3. Default values (fallback)
"""

import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field


class LLMConfig(BaseModel):
    """LLM provider configuration."""

    provider: str = "ollama"  # ollama, openai
    model: str = "llama3.1:8b"
    base_url: str | None = None
    api_key: str | None = None
    temperature: float = 0.0
    max_tokens: int = 1024
    timeout: float = 60.0


class EmbedderConfig(BaseModel):
    """Embedder configuration (entity re-indexing after consolidation)."""

    enabled: bool = True
    provider: str = "ollama"  # ollama, openai
    model: str = "nomic-embed-text"
    base_url: str | None = None
    api_key: str | None = None
    timeout: float = 60.0


class StoreConfig(BaseModel):
    """Persistence configuration."""

    backend: str = "sqlite"
    db_path: str = "data/entity_memory.db"


class CollaboratorConfig(BaseModel):
    """External collaborator (text understanding, classifier, compressor, reasoner) settings."""

    enabled: bool = True
    timeout: float = 30.0


class IngestionConfig(BaseModel):
    """Per-note ingestion settings."""

    context_window: int = 50
    max_context_notes: int = 10
    use_external_extraction: bool = True
    known_entity_limit: int = 50
    job_timeout: float = 120.0


class ImportanceConfig(BaseModel):
    """Importance classification batch settings."""

    batch_size: int = 10
    rate_limit_seconds: float = 0.5


class DecayConfig(BaseModel):
    """Decay scheduling. A grace period of None means the tier never decays."""

    grace_days: dict[str, int | None] = Field(
        default_factory=lambda: {
            "critical": None,
            "high": 90,
            "medium": 30,
            "low": 14,
            "trivial": 7,
        }
    )
    decay_increments: dict[str, float] = Field(
        default_factory=lambda: {
            "critical": 0.0,
            "high": 0.05,
            "medium": 0.10,
            "low": 0.15,
            "trivial": 0.20,
        }
    )
    archive_threshold: float = 0.1
    cycle_days: int = 7


class ConsolidationConfig(BaseModel):
    """Consolidation settings."""

    min_mentions: int = 3
    interval_hours: int = 24
    batch_size: int = 10
    max_topics: int = 5
    use_compressor: bool = True
    min_notes_for_compressor: int = 2
    rate_limit_seconds: float = 1.0


class InferenceConfig(BaseModel):
    """Cross-entity inference settings."""

    max_entities: int = 20
    min_mentions: int = 2
    recent_notes: int = 10
    expiry_days: int = 30
    min_confidence: float = 0.6
    context_limit: int = 5


class MaintenanceConfig(BaseModel):
    """Background maintenance worker settings."""

    interval_hours: int = 24
    job_timeout: float = 300.0
    consolidate: bool = True


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    log_to_file: bool = False
    log_dir: str = "logs"
    file_rotation: str = "10 MB"
    file_retention: str = "7 days"
    compression: str = "zip"
    serialize: bool = True


class Config(BaseModel):
    """Main configuration."""

    llm: LLMConfig = Field(default_factory=LLMConfig)
    embedder: EmbedderConfig = Field(default_factory=EmbedderConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    collaborators: CollaboratorConfig = Field(default_factory=CollaboratorConfig)
    ingestion: IngestionConfig = Field(default_factory=IngestionConfig)
    importance: ImportanceConfig = Field(default_factory=ImportanceConfig)
    decay: DecayConfig = Field(default_factory=DecayConfig)
    consolidation: ConsolidationConfig = Field(default_factory=ConsolidationConfig)
    inference: InferenceConfig = Field(default_factory=InferenceConfig)
    maintenance: MaintenanceConfig = Field(default_factory=MaintenanceConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_env(cls, env_file: str | Path | None = None) -> "Config":
        """
        Load configuration from environment variables.

        Priority: .env file -> system environment variables -> defaults

        Args:
            env_file: Optional path to .env file (default: .env in working directory)

        Returns:
            Config instance

        Environment variables:
            ENTITY_MEMORY_LLM_PROVIDER: LLM provider (ollama, openai)
            ENTITY_MEMORY_LLM_MODEL: LLM model name
            ENTITY_MEMORY_LLM_BASE_URL: LLM base URL
            ENTITY_MEMORY_LLM_API_KEY: LLM API key (for OpenAI)
            ENTITY_MEMORY_EMBEDDER_ENABLED: Re-index entities after consolidation
            ENTITY_MEMORY_EMBEDDER_PROVIDER: Embedder provider
            ENTITY_MEMORY_EMBEDDER_MODEL: Embedder model name
            ENTITY_MEMORY_DB_PATH: SQLite database path
            ENTITY_MEMORY_COLLABORATORS_ENABLED: Use LLM-backed collaborators
            ENTITY_MEMORY_COLLABORATOR_TIMEOUT: Timeout per collaborator call (seconds)
            ENTITY_MEMORY_EXTERNAL_EXTRACTION: Run LLM extraction during ingest
            ENTITY_MEMORY_ARCHIVE_THRESHOLD: Importance score below which entities archive
            ENTITY_MEMORY_DECAY_CYCLE_DAYS: Days between decay cycles per entity
            ENTITY_MEMORY_MAINTENANCE_INTERVAL_HOURS: Background maintenance interval
            ENTITY_MEMORY_LOG_LEVEL: Log level
        """
        if env_file:
            load_dotenv(env_file)
        elif Path(".env").exists():
            load_dotenv()

        def get_env(key: str, default: Any = None) -> Any:
            """Get environment variable with type conversion."""
            value = os.getenv(key)
            if value is None or value == "":
                return default
            if isinstance(default, bool):
                return str(value).lower() in ("true", "1", "yes")
            if isinstance(default, int):
                return int(value)
            if isinstance(default, float):
                return float(value)
            return value

        return cls(
            llm=LLMConfig(
                provider=get_env("ENTITY_MEMORY_LLM_PROVIDER", "ollama"),
                model=get_env("ENTITY_MEMORY_LLM_MODEL", "llama3.1:8b"),
                base_url=get_env("ENTITY_MEMORY_LLM_BASE_URL"),
                api_key=get_env("ENTITY_MEMORY_LLM_API_KEY"),
                temperature=get_env("ENTITY_MEMORY_LLM_TEMPERATURE", 0.0),
                max_tokens=get_env("ENTITY_MEMORY_LLM_MAX_TOKENS", 1024),
                timeout=get_env("ENTITY_MEMORY_LLM_TIMEOUT", 60.0),
            ),
            embedder=EmbedderConfig(
                enabled=get_env("ENTITY_MEMORY_EMBEDDER_ENABLED", True),
                provider=get_env("ENTITY_MEMORY_EMBEDDER_PROVIDER", "ollama"),
                model=get_env("ENTITY_MEMORY_EMBEDDER_MODEL", "nomic-embed-text"),
                base_url=get_env("ENTITY_MEMORY_EMBEDDER_BASE_URL"),
                api_key=get_env("ENTITY_MEMORY_EMBEDDER_API_KEY"),
                timeout=get_env("ENTITY_MEMORY_EMBEDDER_TIMEOUT", 60.0),
            ),
            store=StoreConfig(
                backend=get_env("ENTITY_MEMORY_STORE_BACKEND", "sqlite"),
                db_path=get_env("ENTITY_MEMORY_DB_PATH", "data/entity_memory.db"),
            ),
            collaborators=CollaboratorConfig(
                enabled=get_env("ENTITY_MEMORY_COLLABORATORS_ENABLED", True),
                timeout=get_env("ENTITY_MEMORY_COLLABORATOR_TIMEOUT", 30.0),
            ),
            ingestion=IngestionConfig(
                use_external_extraction=get_env("ENTITY_MEMORY_EXTERNAL_EXTRACTION", True),
                max_context_notes=get_env("ENTITY_MEMORY_MAX_CONTEXT_NOTES", 10),
            ),
            decay=DecayConfig(
                archive_threshold=get_env("ENTITY_MEMORY_ARCHIVE_THRESHOLD", 0.1),
                cycle_days=get_env("ENTITY_MEMORY_DECAY_CYCLE_DAYS", 7),
            ),
            maintenance=MaintenanceConfig(
                interval_hours=get_env("ENTITY_MEMORY_MAINTENANCE_INTERVAL_HOURS", 24),
            ),
            logging=LoggingConfig(
                level=get_env("ENTITY_MEMORY_LOG_LEVEL", "INFO"),
                log_to_file=get_env("ENTITY_MEMORY_LOG_TO_FILE", False),
                log_dir=get_env("ENTITY_MEMORY_LOG_DIR", "logs"),
                file_rotation=get_env("ENTITY_MEMORY_LOG_FILE_ROTATION", "10 MB"),
                file_retention=get_env("ENTITY_MEMORY_LOG_FILE_RETENTION", "7 days"),
                compression=get_env("ENTITY_MEMORY_LOG_COMPRESSION", "zip"),
                serialize=get_env("ENTITY_MEMORY_LOG_SERIALIZE", True),
            ),
        )

    @classmethod
    def from_yaml(cls, yaml_path: str | Path) -> "Config":
        """
        Load configuration from YAML file.

        Raises:
            FileNotFoundError: If YAML file doesn't exist
            yaml.YAMLError: If YAML is invalid
        """
        yaml_path = Path(yaml_path)
        if not yaml_path.exists():
            raise FileNotFoundError(f"Config file not found: {yaml_path}")

        with open(yaml_path) as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)

    @classmethod
    def from_env_or_yaml(
        cls, yaml_path: str | Path | None = None, env_file: str | Path | None = None
    ) -> "Config":
        """
        Load configuration with priority: env vars > YAML > defaults.

        A section from the environment only replaces the YAML section when it
        differs from the defaults.
        """
        if yaml_path and Path(yaml_path).exists():
            with open(yaml_path) as f:
                config_dict = yaml.safe_load(f) or {}
        else:
            config_dict = {}

        env_config = cls.from_env(env_file=env_file)
        default = cls()

        final_dict = {**config_dict}
        for section in (
            "llm",
            "embedder",
            "store",
            "collaborators",
            "ingestion",
            "decay",
            "maintenance",
            "logging",
        ):
            env_section = getattr(env_config, section)
            if env_section != getattr(default, section):
                final_dict[section] = env_section.model_dump()

        return cls(**final_dict) if final_dict else env_config


default_config = Config()
