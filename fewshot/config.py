"""
Application configuration.
Loads settings from environment variables and .env file.
"""
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):

    # Rendering
    example_separator: str = Field(default="\n\n", alias="FEWSHOT_EXAMPLE_SEPARATOR")

    # Length-based selection budget (whitespace tokens)
    default_max_length: int = Field(default=2048, alias="FEWSHOT_MAX_LENGTH")

    # Similarity-based selection
    similarity_k: int = Field(default=4, alias="FEWSHOT_SIMILARITY_K")
    embedding_model: str = Field(default="all-MiniLM-L6-v2", alias="FEWSHOT_EMBEDDING_MODEL")

    # Graph QA chain
    graph_qa_top_k: int = Field(default=10, alias="FEWSHOT_GRAPH_QA_TOP_K")

    # Logging
    log_level: str = Field(default="INFO", alias="FEWSHOT_LOG_LEVEL")
    log_file: Optional[str] = Field(default=None, alias="FEWSHOT_LOG_FILE")

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def package_root(self) -> Path:
        return Path(__file__).parent

    @property
    def template_dir(self) -> Path:
        return self.package_root / "prompting" / "templates"


settings = Settings()
