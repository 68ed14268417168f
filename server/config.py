"""
Runtime configuration for the provenance analysis service.

Settings are read once at startup from the process environment (and a local
.env file when present) and injected into the pipeline. Missing credentials
are a configuration error, never a per-request failure.
"""

import os
from dataclasses import dataclass
from typing import Mapping

from dotenv import load_dotenv

from errors import ConfigurationError
from provenance.retry import INFERENCE_POLICY, METADATA_POLICY, RetryPolicy

# Gemini's OpenAI-compatible chat completions endpoint
DEFAULT_INFERENCE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/chat/completions"
DEFAULT_INFERENCE_MODEL = "gemini-2.0-flash"
DEFAULT_GITHUB_API_URL = "https://api.github.com"

REQUIRED_VARIABLES = ("GITHUB_TOKEN", "GEMINI_API_KEY")


@dataclass(frozen=True)
class Settings:
    """Process-wide configuration shared by every analysis run."""

    github_token: str
    inference_api_key: str
    github_api_url: str = DEFAULT_GITHUB_API_URL
    inference_url: str = DEFAULT_INFERENCE_URL
    inference_model: str = DEFAULT_INFERENCE_MODEL
    manifest_path: str = "package.json"
    commit_limit: int = 20
    request_timeout: float = 30.0
    metadata_policy: RetryPolicy = METADATA_POLICY
    inference_policy: RetryPolicy = INFERENCE_POLICY


def _read_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from None


def _read_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from None


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """
    Build Settings from the environment.

    When `environ` is omitted, a .env file is loaded first and os.environ is
    used. Raises ConfigurationError naming every missing credential.
    """
    if environ is None:
        load_dotenv()
        environ = os.environ

    missing = [name for name in REQUIRED_VARIABLES if not environ.get(name, "").strip()]
    if missing:
        raise ConfigurationError(f"Missing required configuration: {', '.join(missing)}")

    try:
        metadata_policy = RetryPolicy(
            max_retries=_read_int(environ, "METADATA_MAX_RETRIES", 2),
            initial_delay=_read_float(environ, "METADATA_INITIAL_DELAY", 0.5),
        )
        inference_policy = RetryPolicy(
            max_retries=_read_int(environ, "INFERENCE_MAX_RETRIES", 3),
            initial_delay=_read_float(environ, "INFERENCE_INITIAL_DELAY", 1.0),
        )
    except ValueError as e:
        raise ConfigurationError(f"Invalid retry configuration: {e}") from None

    commit_limit = _read_int(environ, "COMMIT_LIMIT", 20)
    if not 1 <= commit_limit <= 100:
        # GitHub caps per_page at 100
        raise ConfigurationError(f"COMMIT_LIMIT must be between 1 and 100, got {commit_limit}")

    request_timeout = _read_float(environ, "REQUEST_TIMEOUT", 30.0)
    if request_timeout <= 0:
        raise ConfigurationError(f"REQUEST_TIMEOUT must be positive, got {request_timeout}")

    return Settings(
        github_token=environ["GITHUB_TOKEN"].strip(),
        inference_api_key=environ["GEMINI_API_KEY"].strip(),
        github_api_url=environ.get("GITHUB_API_URL", DEFAULT_GITHUB_API_URL).rstrip("/"),
        inference_url=environ.get("INFERENCE_URL", DEFAULT_INFERENCE_URL),
        inference_model=environ.get("INFERENCE_MODEL", DEFAULT_INFERENCE_MODEL),
        manifest_path=environ.get("MANIFEST_PATH", "package.json").strip("/") or "package.json",
        commit_limit=commit_limit,
        request_timeout=request_timeout,
        metadata_policy=metadata_policy,
        inference_policy=inference_policy,
    )
