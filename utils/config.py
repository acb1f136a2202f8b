"""
Configuration Management

Simple utility for loading and validating environment configuration,
including the keyword policy used by the status classifier.
"""

import os
from typing import Optional, Tuple
from dotenv import load_dotenv

from core.calculations.status import DEFAULT_KEYWORDS, KeywordConfig

# Environment variable -> KeywordConfig attribute
KEYWORD_ENV_VARS = {
    "KEYWORDS_OPERATIVE": "operative",
    "KEYWORDS_FORCED_REPAIR": "forced_repair",
    "KEYWORDS_TESTING": "testing",
    "KEYWORDS_PARTS": "parts",
    "KEYWORDS_FIELD_TEST": "field_test",
    "KEYWORDS_MINOR_SERVICE": "minor_service",
}

TRUE_VALUES = ("1", "true", "yes", "on")
FALSE_VALUES = ("0", "false", "no", "off")


def load_config(env_path: Optional[str] = None) -> bool:
    """
    Load environment configuration from .env file.

    Args:
        env_path: Optional path to .env file. If None, searches in current directory.

    Returns:
        bool: True if .env file was found and loaded, False otherwise
    """
    if env_path:
        return load_dotenv(env_path)
    return load_dotenv()


def get_database_config() -> dict:
    """
    Get workshop database configuration.

    Returns:
        dict: psycopg2 connection keyword arguments

    Raises:
        ValueError: If required configuration is missing
    """
    config = {
        "host": os.getenv("TALLERDB_HOST"),
        "port": os.getenv("TALLERDB_PORT", "5432"),
        "database": os.getenv("TALLERDB_NAME"),
        "user": os.getenv("TALLERDB_USER"),
        "password": os.getenv("TALLERDB_PASS"),
    }

    # Validate
    missing = [k for k, v in config.items() if not v]
    if missing:
        raise ValueError(
            f"Missing workshop database configuration: {missing}. "
            f"Please check your .env file."
        )

    config["sslmode"] = os.getenv("TALLERDB_SSLMODE", "require")
    return config


def get_app_config() -> dict:
    """
    Get application configuration settings.

    Returns:
        dict: Application settings
    """
    return {
        "top_types": int(os.getenv("TOP_TYPES", "5")),
        "cache_ttl_seconds": int(os.getenv("CACHE_TTL_SECONDS", "60")),
    }


def _parse_keywords(raw: str) -> Tuple[str, ...]:
    return tuple(kw.strip().lower() for kw in raw.split(",") if kw.strip())


def get_keyword_config() -> KeywordConfig:
    """
    Build the classifier keyword policy.

    Each keyword set can be replaced with a comma-separated environment
    variable (e.g. ``KEYWORDS_PARTS="pedido,repuesto,compra"``). An empty
    value clears the set. ``FORCED_REPAIR_OVERRIDES_ALL`` toggles whether a
    forced-repair keyword also blocks the testing and parts states.

    Raises:
        ValueError: If FORCED_REPAIR_OVERRIDES_ALL is not a boolean
    """
    overrides = {}
    for env_var, attribute in KEYWORD_ENV_VARS.items():
        raw = os.getenv(env_var)
        if raw is not None:
            overrides[attribute] = _parse_keywords(raw)

    raw_flag = os.getenv("FORCED_REPAIR_OVERRIDES_ALL")
    if raw_flag is not None:
        flag = raw_flag.strip().lower()
        if flag in TRUE_VALUES:
            overrides["forced_repair_overrides_all"] = True
        elif flag in FALSE_VALUES:
            overrides["forced_repair_overrides_all"] = False
        else:
            raise ValueError(
                f"Invalid FORCED_REPAIR_OVERRIDES_ALL value: '{raw_flag}'. "
                f"Use one of {TRUE_VALUES + FALSE_VALUES}"
            )

    if not overrides:
        return DEFAULT_KEYWORDS

    defaults = {
        name: getattr(DEFAULT_KEYWORDS, name)
        for name in list(KEYWORD_ENV_VARS.values()) + ["forced_repair_overrides_all"]
    }
    defaults.update(overrides)
    return KeywordConfig(**defaults)


def validate_config() -> list:
    """
    Validate all required configuration is present.

    Returns:
        list: List of missing configuration items (empty if all valid)
    """
    missing = []

    try:
        get_database_config()
    except ValueError as e:
        missing.append(f"DATABASE: {str(e)}")

    if not os.getenv("SHARED_PASSWORD"):
        missing.append("AUTH: SHARED_PASSWORD is not set")

    try:
        get_keyword_config()
    except ValueError as e:
        missing.append(f"KEYWORDS: {str(e)}")

    return missing
