"""Configuration module for the Quiz Authoring backend."""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from multiple possible locations
current_dir = Path(__file__).parent
project_root = current_dir.parent

env_loaded = False
for env_path in [
    project_root / ".env",
    current_dir / ".env",
    Path.cwd() / ".env",
]:
    if env_path.exists():
        load_dotenv(env_path)
        print(f"✅ Loaded environment from: {env_path}")
        env_loaded = True
        break

if not env_loaded:
    print("ℹ️ No .env file found. Using environment variables if set.")
    load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    """Application configuration class."""

    # API Keys
    GROQ_API_KEY = os.getenv("GROQ_API_KEY")
    GROQ_MODEL = os.getenv("GROQ_MODEL", "llama-3.3-70b-versatile")

    # Flask Configuration
    SECRET_KEY = os.getenv("FLASK_SECRET_KEY", "dev_only_secret_change_me")

    # CORS Configuration
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")

    # Application Settings
    HOST = os.getenv("HOST", "127.0.0.1")
    PORT = int(os.getenv("PORT", "5000"))
    DEBUG = _env_bool("DEBUG", True)

    # Request Settings
    MAX_CONTENT_LENGTH = 2 * 1024 * 1024  # pasted text only, 2MB is plenty

    # Extraction Settings
    EXTRACTION_MAX_TOKENS = int(os.getenv("EXTRACTION_MAX_TOKENS", "6000"))
    EXTRACTION_TEMPERATURE = float(os.getenv("EXTRACTION_TEMPERATURE", "0.1"))

    @classmethod
    def has_llm(cls) -> bool:
        """True when the Groq extractor can be used."""
        return bool(cls.GROQ_API_KEY)
