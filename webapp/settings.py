"""Runtime settings read from the environment (and a project .env file)."""

import os
from pathlib import Path
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

PROJECT_ROOT = Path(__file__).parent.parent


class Settings(BaseModel):
    data_dir: Path = PROJECT_ROOT / "data"
    hotel_file: str = "hotel.json"
    sources_file: str = "sources.json"
    chunks_file: str = "unstructured_chunks.json"
    top_n_chunks: int = Field(default=3, ge=1)
    narrative_provider: Literal["openai", "anthropic"] = "openai"
    narrative_model: Optional[str] = None
    openai_api_key: str = ""
    anthropic_api_key: str = ""

    @property
    def narrative_api_key(self) -> str:
        if self.narrative_provider == "anthropic":
            return self.anthropic_api_key
        return self.openai_api_key

    @property
    def narrative_configured(self) -> bool:
        return bool(self.narrative_api_key)


def load_settings(env_file: Optional[Path] = None) -> Settings:
    """Build Settings from environment variables, loading .env first."""
    load_dotenv(env_file or PROJECT_ROOT / ".env")

    return Settings(
        data_dir=os.getenv("BRIEF_DATA_DIR") or PROJECT_ROOT / "data",
        hotel_file=os.getenv("BRIEF_HOTEL_FILE", "hotel.json"),
        sources_file=os.getenv("BRIEF_SOURCES_FILE", "sources.json"),
        chunks_file=os.getenv("BRIEF_CHUNKS_FILE", "unstructured_chunks.json"),
        top_n_chunks=os.getenv("BRIEF_TOP_N_CHUNKS", "3"),
        narrative_provider=os.getenv("NARRATIVE_PROVIDER", "openai").lower(),
        narrative_model=os.getenv("NARRATIVE_MODEL") or None,
        openai_api_key=os.getenv("OPENAI_API_KEY", ""),
        anthropic_api_key=os.getenv("ANTHROPIC_API_KEY", ""),
    )
