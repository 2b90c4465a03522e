# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-11-08
# Description: Config
# -----------------------------------------------------------------------------

import os
from dataclasses import dataclass
from dotenv import load_dotenv, find_dotenv

# Load .env once globally
load_dotenv(find_dotenv(usecwd=True), override=True)


@dataclass(frozen=True)
class Config:
    # OpenAI (embeddings)
    openai_api_key: str
    openai_base_url: str = ""
    openai_embed_model: str = "text-embedding-3-small"
    embedding_dimensions: int = 1536

    # Chroma Vector Database. No API key means a local persistent client.
    chroma_api_key: str = ""
    chroma_tenant: str = ""
    chroma_database: str = ""
    chroma_path: str = ".chroma"

    # ---- Single source of truth: field_name -> ENV VAR NAME ----
    ENV_VARS = {
        # OpenAI
        "openai_api_key": "OPENAI_API_KEY",
        "openai_base_url": "OPENAI_BASE_URL",      # e.g. https://api.openai.com/v1
        "openai_embed_model": "OPENAI_EMBED_MODEL",
        "embedding_dimensions": "KB_EMBEDDING_DIMENSIONS",

        # Chroma
        "chroma_api_key": "CHROMA_API_KEY",
        "chroma_tenant": "CHROMA_TENANT",
        "chroma_database": "CHROMA_DATABASE",
        "chroma_path": "CHROMA_PATH",
    }

    REQUIRED_FIELDS = ("openai_api_key",)

    # Chroma Cloud needs all three together
    CHROMA_CLOUD_ENV_VARS = (
        "CHROMA_API_KEY",
        "CHROMA_TENANT",
        "CHROMA_DATABASE",
    )

    @staticmethod
    def from_env() -> "Config":
        """Build Config object from environment variables; unset values keep their defaults."""
        kwargs = {}
        for field_name, env_name in Config.ENV_VARS.items():
            raw = os.getenv(env_name)
            if raw is None or raw.strip() == "":
                continue
            raw = raw.strip()
            if field_name == "embedding_dimensions":
                try:
                    kwargs[field_name] = int(raw)
                except ValueError as e:
                    raise ValueError(f"{env_name} must be an int, got {raw!r}") from e
            else:
                kwargs[field_name] = raw
        kwargs.setdefault("openai_api_key", "")
        return Config(**kwargs)

    def __post_init__(self):
        """
        Fail fast if any required config is missing or inconsistent.
        """
        missing_fields = [f for f in self.REQUIRED_FIELDS if not getattr(self, f)]
        if missing_fields:
            missing_env_vars = [self.ENV_VARS[f] for f in missing_fields]
            raise ValueError(f"Missing required environment variables: {missing_env_vars}")

        if self.embedding_dimensions < 1:
            raise ValueError(f"embedding_dimensions must be >= 1, got {self.embedding_dimensions}")

        if self.chroma_api_key and not (self.chroma_tenant and self.chroma_database):
            raise ValueError(
                f"CHROMA_API_KEY is set; Chroma Cloud also needs {list(self.CHROMA_CLOUD_ENV_VARS[1:])}"
            )

    @property
    def uses_chroma_cloud(self) -> bool:
        return bool(self.chroma_api_key)

    def summary(self) -> dict:
        """Return a safe, non-sensitive summary for logging."""
        return {
            "openai_base_url": self.openai_base_url or "(default)",
            "openai_embed_model": self.openai_embed_model,
            "embedding_dimensions": self.embedding_dimensions,
            "chroma_mode": "cloud" if self.uses_chroma_cloud else "local",
            "chroma_tenant": self.chroma_tenant,
            "chroma_database": self.chroma_database,
            "chroma_path": self.chroma_path,
        }
