"""
SynthPool Core Module

Core ledger functionality:
- Engine orchestration with atomic rollback
- Token model and DeFi accounting primitives
- Configuration, structured logging and Prometheus metrics
"""

from .config import EngineSettings, NetworkType
from .engine import LedgerEvent, SynthPoolEngine
from .metrics import LedgerMetrics, get_ledger_metrics

__all__ = [
    "EngineSettings",
    "NetworkType",
    "LedgerEvent",
    "SynthPoolEngine",
    "LedgerMetrics",
    "get_ledger_metrics",
]
