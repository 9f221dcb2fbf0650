"""In-process request metrics, enabled by ``ServerOptions.enable_metrics``."""

from dataclasses import dataclass, field


@dataclass
class MethodStats:
    count: int = 0
    errors: int = 0
    total_latency_ms: float = 0.0

    @property
    def mean_latency_ms(self) -> float:
        return self.total_latency_ms / self.count if self.count else 0.0


@dataclass
class DispatchMetrics:
    """Per-method request counters and latency totals."""

    methods: dict[str, MethodStats] = field(default_factory=dict)

    def record(self, method: str, latency_ms: float, success: bool) -> None:
        stats = self.methods.setdefault(method, MethodStats())
        stats.count += 1
        stats.total_latency_ms += latency_ms
        if not success:
            stats.errors += 1

    def snapshot(self) -> dict[str, dict[str, float | int]]:
        return {
            method: {
                "count": stats.count,
                "errors": stats.errors,
                "mean_latency_ms": round(stats.mean_latency_ms, 3),
            }
            for method, stats in sorted(self.methods.items())
        }
