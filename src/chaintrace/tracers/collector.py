"""
In-memory tracer that keeps every finished root run.
"""

from ..core.run import Run
from ..core.tracer import BaseTracer


class RunCollectorTracer(BaseTracer):
    """Collects finished root runs in ``traced_runs``."""

    name = "run_collector"

    def __init__(self) -> None:
        super().__init__()
        self.traced_runs: list[Run] = []

    async def persist_run(self, run: Run) -> None:
        self.traced_runs.append(run)

    def clear(self) -> None:
        self.traced_runs.clear()


__all__ = ["RunCollectorTracer"]
