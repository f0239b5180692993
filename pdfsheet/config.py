#!/usr/bin/env python3
"""
Configuration management for pdfsheet.

Loads configuration from (in order of priority):
1. Environment variables (PDFSHEET_*)
2. Config file (./config.local.toml, ./config.toml or ~/.config/pdfsheet/config.toml)
3. Default values

Usage:
    from pdfsheet.config import config

    print(config.vision_llm_url)
    print(config.job_retention_minutes)

Environment variables:
    PDFSHEET_VISION_LLM_URL          - Vision LLM endpoint (OpenAI-compatible base URL)
    PDFSHEET_VISION_LLM_MODEL        - Vision model name
    PDFSHEET_VISION_LLM_API_KEY      - API key (GROQ_API_KEY is used as fallback)
    PDFSHEET_VISION_LLM_TEMPERATURE  - Sampling temperature
    PDFSHEET_VISION_LLM_MAX_TOKENS   - Maximum response tokens per page
    PDFSHEET_VISION_LLM_TIMEOUT      - Read timeout for one page, in seconds
    PDFSHEET_RENDER_SCALE            - Page rasterization scale factor
    PDFSHEET_MAX_PAGE_DIMENSION      - Maximum pixels for the longest page side
    PDFSHEET_JOB_RETENTION_MINUTES   - Minutes a job is kept after its last update
    PDFSHEET_JOB_SWEEP_INTERVAL      - Seconds between retention sweeps
    PDFSHEET_MAX_CONCURRENT_JOBS     - Conversions allowed to run at the same time
    PDFSHEET_EVICT_ACTIVE_JOBS       - Also evict queued/processing jobs when stale
    PDFSHEET_HOST                    - API server host
    PDFSHEET_PORT                    - API server port
    PDFSHEET_REQUIRE_API_KEY         - Reject uploads when no API key is configured
    PDFSHEET_SHEET_TITLE             - Worksheet title
    PDFSHEET_LOCALE                  - Language for progress messages (en, pt)
"""

import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

# Try to import toml, fall back gracefully
try:
    import tomllib  # Python 3.11+
except ImportError:
    try:
        import tomli as tomllib  # type: ignore
    except ImportError:
        tomllib = None  # type: ignore


@dataclass
class Config:
    """Configuration container.

    Values are loaded from config.toml file. Environment variables can override.
    """

    # Vision LLM (table recognition)
    vision_llm_url: str = "https://api.groq.com/openai/v1"
    vision_llm_model: str = "meta-llama/llama-4-scout-17b-16e-instruct"
    vision_llm_api_key: str = ""
    vision_llm_temperature: float = 0.1
    vision_llm_max_tokens: int = 8000
    vision_llm_timeout: float = 300.0

    # Rasterization
    render_scale: float = 2.0
    max_page_dimension: int = 2048

    # Jobs
    job_retention_minutes: int = 30
    job_sweep_interval: int = 60
    max_concurrent_jobs: int = 2
    evict_active_jobs: bool = False

    # Server
    host: str = "127.0.0.1"
    port: int = 8096
    require_api_key: bool = True

    # Output
    sheet_title: str = "Table"
    locale: str = "en"

    # Metadata
    config_source: str = "defaults"


# Attributes that need type coercion when read from the environment
INT_FIELDS = frozenset(
    {
        "vision_llm_max_tokens",
        "max_page_dimension",
        "job_retention_minutes",
        "job_sweep_interval",
        "max_concurrent_jobs",
        "port",
    }
)
FLOAT_FIELDS = frozenset({"vision_llm_temperature", "vision_llm_timeout", "render_scale"})
BOOL_FIELDS = frozenset({"evict_active_jobs", "require_api_key"})


def parse_bool(value: str) -> bool:
    """Interpret common truthy strings ("1", "true", "yes", "on")."""
    return value.strip().lower() in ("1", "true", "yes", "on")


def get_package_root() -> Path:
    """Get the root directory of the pdfsheet package."""
    # This file is at pdfsheet/config.py, so parent.parent is repo root
    return Path(__file__).parent.parent.resolve()


def find_config_file() -> Optional[Path]:
    """Find config file in standard locations."""
    package_root = get_package_root()

    locations = [
        Path("config.local.toml"),  # Local override (gitignored)
        Path("config.toml"),  # Current directory
        package_root / "config.local.toml",  # Package root local override
        package_root / "config.toml",  # Package root
        Path.home() / ".config" / "pdfsheet" / "config.toml",
    ]

    for path in locations:
        if path.exists():
            return path
    return None


def load_config() -> Config:
    """Load configuration from file and environment."""
    config = Config()

    # Load from TOML file if available
    config_file = find_config_file()
    if config_file and tomllib:
        try:
            with open(config_file, "rb") as f:
                data = tomllib.load(f)

            # Vision LLM section
            if "vision_llm" in data:
                vision = data["vision_llm"]
                config.vision_llm_url = vision.get("url", config.vision_llm_url)
                config.vision_llm_model = vision.get("model", config.vision_llm_model)
                config.vision_llm_api_key = vision.get("api_key", config.vision_llm_api_key)
                config.vision_llm_temperature = float(
                    vision.get("temperature", config.vision_llm_temperature)
                )
                config.vision_llm_max_tokens = int(
                    vision.get("max_tokens", config.vision_llm_max_tokens)
                )
                config.vision_llm_timeout = float(vision.get("timeout", config.vision_llm_timeout))

            # Rasterization section
            if "rasterize" in data:
                raster = data["rasterize"]
                config.render_scale = float(raster.get("scale", config.render_scale))
                config.max_page_dimension = int(
                    raster.get("max_dimension", config.max_page_dimension)
                )

            # Jobs section
            if "jobs" in data:
                jobs = data["jobs"]
                config.job_retention_minutes = int(
                    jobs.get("retention_minutes", config.job_retention_minutes)
                )
                config.job_sweep_interval = int(
                    jobs.get("sweep_interval", config.job_sweep_interval)
                )
                config.max_concurrent_jobs = int(
                    jobs.get("max_concurrent", config.max_concurrent_jobs)
                )
                config.evict_active_jobs = bool(jobs.get("evict_active", config.evict_active_jobs))

            # Server section
            if "server" in data:
                server = data["server"]
                config.host = server.get("host", config.host)
                config.port = int(server.get("port", config.port))
                config.require_api_key = bool(
                    server.get("require_api_key", config.require_api_key)
                )

            # Output section
            if "output" in data:
                output = data["output"]
                config.sheet_title = output.get("sheet_title", config.sheet_title)
                config.locale = output.get("locale", config.locale)

            config.config_source = str(config_file)

        except Exception as e:
            print(f"Warning: Failed to load config from {config_file}: {e}", file=sys.stderr)

    # Environment variables override file config
    env_mappings = {
        "PDFSHEET_VISION_LLM_URL": "vision_llm_url",
        "PDFSHEET_VISION_LLM_MODEL": "vision_llm_model",
        "PDFSHEET_VISION_LLM_API_KEY": "vision_llm_api_key",
        "PDFSHEET_VISION_LLM_TEMPERATURE": "vision_llm_temperature",
        "PDFSHEET_VISION_LLM_MAX_TOKENS": "vision_llm_max_tokens",
        "PDFSHEET_VISION_LLM_TIMEOUT": "vision_llm_timeout",
        "PDFSHEET_RENDER_SCALE": "render_scale",
        "PDFSHEET_MAX_PAGE_DIMENSION": "max_page_dimension",
        "PDFSHEET_JOB_RETENTION_MINUTES": "job_retention_minutes",
        "PDFSHEET_JOB_SWEEP_INTERVAL": "job_sweep_interval",
        "PDFSHEET_MAX_CONCURRENT_JOBS": "max_concurrent_jobs",
        "PDFSHEET_EVICT_ACTIVE_JOBS": "evict_active_jobs",
        "PDFSHEET_HOST": "host",
        "PDFSHEET_PORT": "port",
        "PDFSHEET_REQUIRE_API_KEY": "require_api_key",
        "PDFSHEET_SHEET_TITLE": "sheet_title",
        "PDFSHEET_LOCALE": "locale",
    }

    for env_var, attr in env_mappings.items():
        value = os.environ.get(env_var)
        if value is not None:
            if attr in INT_FIELDS:
                value = int(value)
            elif attr in FLOAT_FIELDS:
                value = float(value)
            elif attr in BOOL_FIELDS:
                value = parse_bool(value)
            setattr(config, attr, value)
            if config.config_source == "defaults":
                config.config_source = "environment"

    # Groq deployments usually only export GROQ_API_KEY
    if not config.vision_llm_api_key and os.environ.get("GROQ_API_KEY"):
        config.vision_llm_api_key = os.environ["GROQ_API_KEY"]

    return config


# Global config instance - loaded once at import
config = load_config()


def describe_config(cfg: Config) -> str:
    """Render configuration as a human-readable block (API key masked)."""
    lines = [
        "pdfsheet Configuration",
        "=" * 50,
        f"Config source: {cfg.config_source}",
        "",
        "[Vision LLM]",
        f"  url: {cfg.vision_llm_url}",
        f"  model: {cfg.vision_llm_model}",
        f"  api_key: {'***' if cfg.vision_llm_api_key else '(not set)'}",
        f"  temperature: {cfg.vision_llm_temperature}",
        f"  max_tokens: {cfg.vision_llm_max_tokens}",
        f"  timeout: {cfg.vision_llm_timeout}s",
        "",
        "[Rasterize]",
        f"  scale: {cfg.render_scale}",
        f"  max_dimension: {cfg.max_page_dimension}",
        "",
        "[Jobs]",
        f"  retention_minutes: {cfg.job_retention_minutes}",
        f"  sweep_interval: {cfg.job_sweep_interval}s",
        f"  max_concurrent: {cfg.max_concurrent_jobs}",
        f"  evict_active: {cfg.evict_active_jobs}",
        "",
        "[Server]",
        f"  host: {cfg.host}",
        f"  port: {cfg.port}",
        f"  require_api_key: {cfg.require_api_key}",
        "",
        "[Output]",
        f"  sheet_title: {cfg.sheet_title}",
        f"  locale: {cfg.locale}",
    ]
    return "\n".join(lines)


# --- CLI for testing ---

if __name__ == "__main__":
    print(describe_config(config))
