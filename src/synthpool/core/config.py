"""
SynthPool Configuration

Engine defaults come from environment variables so deployments can tune
fees and solver bounds without code changes. Explicit arguments passed to
``SynthPoolEngine.initialize`` always win over these defaults.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from enum import Enum

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class NetworkType(Enum):
    TESTNET = "testnet"
    MAINNET = "mainnet"


def _get_int(env_var: str, default: int, low: int = 0, high: int | None = None) -> int:
    raw = os.getenv(env_var, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{env_var} must be an integer, got {raw!r}") from exc
    if value < low or (high is not None and value > high):
        raise ConfigurationError(
            f"{env_var} out of range: {value}",
            details={"env_var": env_var, "low": low, "high": high},
        )
    return value


@dataclass(frozen=True)
class EngineSettings:
    """Tunable engine parameters."""

    network: NetworkType = NetworkType.TESTNET
    stable_swap_fee_bps: int = 5
    synthetic_swap_fee_bps: int = 10
    flash_loan_fee_bps: int = 10
    minimum_liquidity: int = 1000
    solver_max_iterations: int = 255
    log_level: str = "INFO"
    log_file: str = ""

    @classmethod
    def from_env(cls) -> "EngineSettings":
        """
        Build settings from ``SYNTHPOOL_*`` environment variables.

        Raises:
            ConfigurationError: On malformed or out-of-range values
        """
        network_raw = os.getenv("SYNTHPOOL_NETWORK", "testnet").strip().lower()
        try:
            network = NetworkType(network_raw)
        except ValueError as exc:
            raise ConfigurationError(f"Unknown network: {network_raw}") from exc

        log_level = os.getenv("SYNTHPOOL_LOG_LEVEL", "INFO").strip().upper()
        if log_level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ConfigurationError(f"Unknown log level: {log_level}")

        settings = cls(
            network=network,
            stable_swap_fee_bps=_get_int("SYNTHPOOL_STABLE_SWAP_FEE_BPS", 5, 0, 9999),
            synthetic_swap_fee_bps=_get_int("SYNTHPOOL_SYNTHETIC_SWAP_FEE_BPS", 10, 0, 9999),
            flash_loan_fee_bps=_get_int("SYNTHPOOL_FLASH_LOAN_FEE_BPS", 10, 0, 9999),
            minimum_liquidity=_get_int("SYNTHPOOL_MINIMUM_LIQUIDITY", 1000, 1),
            solver_max_iterations=_get_int("SYNTHPOOL_SOLVER_MAX_ITERATIONS", 255, 1, 10_000),
            log_level=log_level,
            log_file=os.getenv("SYNTHPOOL_LOG_FILE", "").strip(),
        )

        if settings.network is NetworkType.MAINNET and settings.flash_loan_fee_bps == 0:
            logger.warning(
                "Flash loans are free on mainnet",
                extra={"event": "config.zero_flash_fee"},
            )
        return settings
