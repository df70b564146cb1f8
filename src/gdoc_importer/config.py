"""Configuration constants for gdoc-importer."""

import os
from pathlib import Path

# OAuth access token location. First file found is used; GOOGLE_ACCESS_TOKEN overrides.
ACCESS_TOKEN_ENV = "GOOGLE_ACCESS_TOKEN"
ACCESS_TOKEN_FILES: list[Path] = [
    Path("~/.config/gdoc-importer-token.txt").expanduser(),
    Path("~/.config/secret/gdoc-importer-token.txt").expanduser(),
    Path(f"/run/user/{os.getuid()}/gdoc-importer-token"),
]

DOCS_API_URL = "https://docs.googleapis.com/v1/documents"
DRIVE_API_URL = "https://www.googleapis.com/drive/v3/files"
DOCS_API_TIMEOUT: float = float(os.environ.get("DOCS_API_TIMEOUT", "30"))

# Cache prefix, used only when --cache is passed.
API_CACHE_PREFIX: str = "/tmp/gdoc-importer-cache/cache-"

# Where imported documents land when no --out-dir is given.
OUTPUT_DIR_ENV = "GDOC_IMPORT_OUTPUT_DIR"
DEFAULT_OUTPUT_DIR = Path("~/.local/share/gdoc-importer").expanduser()

# Text rewrite providers. OpenAI is preferred when both keys are present.
OPENAI_API_URL = "https://api.openai.com/v1"
DEFAULT_OPENAI_MODEL = "gpt-4o-mini"
GEMINI_API_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_GEMINI_MODEL = "gemini-2.0-flash"

REWRITE_TIMEOUT: float = float(os.environ.get("REWRITE_TIMEOUT", "120"))
REWRITE_TEMPERATURE: float = float(os.environ.get("REWRITE_TEMPERATURE", "0.7"))
REWRITE_MAX_TOKENS = 4000

DEFAULT_AUDIENCE = "blog post"
DEFAULT_TITLE = "Untitled Document"


def resolve_output_directory() -> Path:
    """Return the output directory from the environment, or the default."""
    env_dir = os.environ.get(OUTPUT_DIR_ENV)
    return Path(env_dir).expanduser() if env_dir else DEFAULT_OUTPUT_DIR


# Logging; the level env var is ignored when -v is given.
LOG_LEVEL_ENV = "GDOC_IMPORT_LOG_LEVEL"
LOG_FORMAT = "{level.icon} {message}"
