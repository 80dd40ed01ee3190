"""
HedgeLab Configuration
======================

Centralized configuration management using environment variables with sensible
defaults.

This module provides a singleton ``Settings`` instance that loads configuration
from environment variables prefixed with ``HEDGELAB_``. All settings have defaults
suitable for the standard key-rate hedging workflow.

Environment Variables
---------------------
HEDGELAB_LOG_LEVEL : str
    Logging level (DEBUG, INFO, WARNING, ERROR).
HEDGELAB_DEFAULT_BUMP_BP : float
    Key-rate bump size in basis points (default: 1.0).
HEDGELAB_DEFAULT_RIDGE_LAMBDA : float
    Ridge term added to the diagonal of the normal equations (default: 1e-8).
HEDGELAB_PIVOT_TOLERANCE : float
    Pivots smaller than this in magnitude mark the system as singular
    (default: 1e-15).
HEDGELAB_CHECK_FINITE : bool
    Reject NaN/Inf discount factors and sensitivities (default: false).

Example
-------
Using environment variables::

    export HEDGELAB_DEFAULT_RIDGE_LAMBDA=1e-6
    export HEDGELAB_LOG_LEVEL=DEBUG

Accessing settings in code::

    from hedgelab.config import settings
    print(f"Ridge default: {settings.default_ridge_lambda:g}")
"""

from __future__ import annotations

import json
import logging
import os
from functools import lru_cache
from typing import Any, Dict, List


def _get_env(key: str, default: Any, value_type: type = str) -> Any:
    """
    Get an environment variable with type conversion.

    Parameters
    ----------
    key : str
        Environment variable name (will be prefixed with HEDGELAB_).
    default : Any
        Default value if not set.
    value_type : type
        Type to convert to (str, int, float, bool, list).

    Returns
    -------
    Any
        The environment variable value converted to the specified type.
    """
    env_name = f"HEDGELAB_{key.upper()}"
    env_value = os.environ.get(env_name)

    if env_value is None:
        return default

    try:
        if value_type == bool:
            return env_value.lower() in ("true", "1", "yes", "on")
        elif value_type == int:
            return int(env_value)
        elif value_type == float:
            return float(env_value)
        elif value_type == list:
            try:
                parsed = json.loads(env_value)
            except json.JSONDecodeError:
                return [float(v) for v in env_value.split(",")]
            return parsed if isinstance(parsed, list) else [parsed]
        else:
            return env_value
    except (ValueError, TypeError):
        return default


class Settings:
    """
    Application configuration loaded from environment variables.

    The numerical defaults here are the ones every public operation falls
    back to when the caller passes ``None``.

    Example
    -------
    >>> from hedgelab.config import settings
    >>> settings.default_ridge_lambda
    1e-08
    """

    def __init__(self) -> None:
        """Initialize settings from environment variables."""
        # =====================================================================
        # Logging Configuration
        # =====================================================================
        self.log_level: str = _get_env("LOG_LEVEL", "INFO", str)
        self.log_format: str = _get_env("LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s", str)

        # =====================================================================
        # Key-Rate Sensitivity Defaults
        # =====================================================================
        self.default_bump_bp: float = _get_env("DEFAULT_BUMP_BP", 1.0, float)
        self.default_key_tenors: List[float] = _get_env("DEFAULT_KEY_TENORS", [2.0, 5.0, 7.0, 10.0, 20.0, 30.0], list)
        self.day_count_basis: float = _get_env("DAY_COUNT_BASIS", 365.25, float)

        # =====================================================================
        # Least-Squares Solver Defaults
        # =====================================================================
        # Tiny ridge keeps A^T A strictly positive definite when hedgers are
        # collinear or carry an all-zero sensitivity column.
        self.default_ridge_lambda: float = _get_env("DEFAULT_RIDGE_LAMBDA", 1e-8, float)
        self.pivot_tolerance: float = _get_env("PIVOT_TOLERANCE", 1e-15, float)
        self.elimination_skip_tolerance: float = _get_env("ELIMINATION_SKIP_TOLERANCE", 1e-18, float)

        # =====================================================================
        # Numerical Guards
        # =====================================================================
        self.check_finite: bool = _get_env("CHECK_FINITE", False, bool)

    @property
    def log_level_int(self) -> int:
        """Return the log level as an integer constant."""
        return getattr(logging, self.log_level.upper(), logging.INFO)

    def configure_logging(self) -> None:
        """
        Configure application logging based on settings.

        Sets up the root logger with the configured level and format.
        """
        logging.basicConfig(
            level=self.log_level_int,
            format=self.log_format,
        )


@lru_cache()
def get_settings() -> Settings:
    """
    Return the cached application settings instance.

    Returns
    -------
    Settings
        Application settings instance.
    """
    return Settings()


# Module-level singleton for convenience
settings = get_settings()


def get_solver_parameters() -> Dict[str, Any]:
    """
    Return least-squares solver parameters as a dictionary.

    Returns
    -------
    dict
        Solver configuration.

    Example
    -------
    >>> params = get_solver_parameters()
    >>> print(f"Pivot tolerance: {params['pivot_tolerance']:g}")
    Pivot tolerance: 1e-15
    """
    current = get_settings()
    return {
        "ridge_lambda": current.default_ridge_lambda,
        "pivot_tolerance": current.pivot_tolerance,
        "elimination_skip_tolerance": current.elimination_skip_tolerance,
    }
