"""
Ledger metrics for SynthPool

Prometheus metrics for committed and reverted operations, anchor pool
trading, synthetic issuance, liquidations and flash loans.

Metrics are recorded only once an operation has committed, so a rolled
back operation shows up in ``operations_total{status="reverted"}`` and
nowhere else.
"""

from __future__ import annotations

from prometheus_client import REGISTRY, Counter, Gauge, Histogram


class LedgerMetrics:
    """Metrics for ledger operations."""

    def __init__(self, registry=None):
        self.registry = registry or REGISTRY

        # Operation metrics
        self.operations_total = Counter(
            'synthpool_operations_total',
            'Ledger operations by outcome',
            ['operation', 'status'],
            registry=self.registry
        )

        self.operation_latency = Histogram(
            'synthpool_operation_latency_seconds',
            'Ledger operation latency',
            ['operation'],
            buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0],
            registry=self.registry
        )

        self.reverts_total = Counter(
            'synthpool_reverts_total',
            'Reverted operations by error type',
            ['operation', 'error_type'],
            registry=self.registry
        )

        # Anchor pool metrics
        self.swaps_total = Counter(
            'synthpool_swaps_total',
            'Swaps executed',
            ['route', 'token_in', 'token_out'],
            registry=self.registry
        )

        self.swap_volume = Counter(
            'synthpool_swap_volume_total',
            'Swap input volume in token base units',
            ['route', 'denom'],
            registry=self.registry
        )

        self.swap_fees_collected = Counter(
            'synthpool_swap_fees_collected_total',
            'Swap fees collected in token base units',
            ['route', 'denom'],
            registry=self.registry
        )

        self.pool_reserves = Gauge(
            'synthpool_pool_reserves',
            'Current anchor pool reserves',
            ['denom'],
            registry=self.registry
        )

        self.lp_share_supply = Gauge(
            'synthpool_lp_share_supply',
            'Anchor pool LP share supply',
            registry=self.registry
        )

        # Lending metrics
        self.borrowed_total = Counter(
            'synthpool_borrowed_total',
            'Synthetic debt minted',
            ['synthetic'],
            registry=self.registry
        )

        self.repaid_total = Counter(
            'synthpool_repaid_total',
            'Synthetic debt repaid (principal and interest)',
            ['synthetic'],
            registry=self.registry
        )

        self.liquidations_total = Counter(
            'synthpool_liquidations_total',
            'Liquidations executed',
            ['collateral', 'synthetic', 'capped'],
            registry=self.registry
        )

        self.bad_debt_total = Counter(
            'synthpool_bad_debt_total',
            'Debt left without collateral after liquidation',
            ['synthetic'],
            registry=self.registry
        )

        # Flash loan metrics
        self.flash_loans_total = Counter(
            'synthpool_flash_loans_total',
            'Flash loan legs repaid',
            ['asset'],
            registry=self.registry
        )

        self.flash_loan_fees = Counter(
            'synthpool_flash_loan_fees_total',
            'Flash loan fees collected',
            ['asset'],
            registry=self.registry
        )

        # Deferred burn
        self.pending_burn_amount = Gauge(
            'synthpool_pending_burn_amount',
            'Synthetic amount waiting in the pending-burn slot',
            registry=self.registry
        )

        self.burns_settled = Counter(
            'synthpool_pending_burns_settled_total',
            'Pending burns settled',
            ['asset'],
            registry=self.registry
        )


# Singleton instance
_ledger_metrics_instance = None


def get_ledger_metrics(registry=None):
    """Get or create singleton ledger metrics instance."""
    global _ledger_metrics_instance
    if _ledger_metrics_instance is None:
        _ledger_metrics_instance = LedgerMetrics(registry=registry)
    return _ledger_metrics_instance


def track_swap(metrics, route, token_in, token_out, amount_in, fee, fee_denom=None):
    """Record a committed swap. Fees default to the input denomination."""
    metrics.swaps_total.labels(route=route, token_in=token_in, token_out=token_out).inc()
    metrics.swap_volume.labels(route=route, denom=token_in).inc(amount_in)
    if fee:
        metrics.swap_fees_collected.labels(route=route, denom=fee_denom or token_in).inc(fee)
