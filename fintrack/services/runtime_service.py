"""Runtime health service."""

from __future__ import annotations

from fintrack.auth.session import Session
from fintrack.runtime.monitoring import HealthSnapshot, ServerMetrics
from fintrack.services.base import ServiceContext


class RuntimeService:
    def __init__(self, ctx: ServiceContext, session: Session | None = None) -> None:
        self.ctx = ctx
        self.session = session

    def get_server_health(self) -> HealthSnapshot:
        provider_status = {name: provider is not None for name, provider in self.ctx.providers.items()}
        signed_in = bool(self.session and self.session.is_authenticated)
        metrics = self.ctx.server_metrics
        if not isinstance(metrics, ServerMetrics):
            return HealthSnapshot(
                uptime_seconds=0.0,
                total_requests=0,
                error_rate=0.0,
                avg_latency_ms=0.0,
                cache_entries=len(self.ctx.cache),
                signed_in=signed_in,
                provider_status=provider_status,
            )
        return metrics.snapshot(provider_status, cache_entries=len(self.ctx.cache), signed_in=signed_in)
