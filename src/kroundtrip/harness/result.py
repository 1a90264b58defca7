"""Run and worker result dataclasses."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field

from kroundtrip.harness.latency import LatencyTrend
from kroundtrip.harness.state import HarnessState, transition

PRODUCE_DURATION = "produce_duration"


@dataclass
class CheckStats:
    passes: int = 0
    fails: int = 0

    @property
    def ok(self) -> bool:
        return self.fails == 0


@dataclass
class WorkerOutcome:
    """What one worker did, and how far it got."""

    index: int
    group_id: str
    state: HarnessState = HarnessState.SCHEMAS_REGISTERED
    messages_produced: int = 0
    messages_consumed: int = 0
    produce_duration_ms: float | None = None
    checks: dict[str, bool] = field(default_factory=dict)
    error: str | None = None

    def advance(self, target: HarnessState) -> None:
        self.state = transition(self.state, target)

    @property
    def aborted(self) -> bool:
        return self.error is not None


@dataclass
class RunResult:
    """Result of one harness run.

    ``fatal_error`` is set when setup failed and no worker could run;
    ``errors`` holds per-worker failures. Failed checks are a correctness
    signal and live in ``checks``.
    """

    run_id: str
    state: HarnessState = HarnessState.IDLE
    workers: list[WorkerOutcome] = field(default_factory=list)
    checks: dict[str, CheckStats] = field(default_factory=dict)
    produce_duration: LatencyTrend = field(
        default_factory=lambda: LatencyTrend(PRODUCE_DURATION)
    )
    errors: list[str] = field(default_factory=list)
    teardown_errors: list[str] = field(default_factory=list)
    fatal_error: str | None = None
    duration_seconds: float = 0.0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def add_error(self, error: str) -> None:
        with self._lock:
            self.errors.append(error)

    def add_teardown_error(self, error: str) -> None:
        with self._lock:
            self.teardown_errors.append(error)

    def record_check(self, name: str, ok: bool) -> None:
        with self._lock:
            stats = self.checks.setdefault(name, CheckStats())
            if ok:
                stats.passes += 1
            else:
                stats.fails += 1

    @property
    def messages_produced(self) -> int:
        return sum(w.messages_produced for w in self.workers)

    @property
    def messages_consumed(self) -> int:
        return sum(w.messages_consumed for w in self.workers)

    @property
    def aborted(self) -> bool:
        return self.fatal_error is not None

    @property
    def checks_passed(self) -> bool:
        return bool(self.checks) and all(stats.ok for stats in self.checks.values())

    @property
    def exit_code(self) -> int:
        if self.aborted:
            return 2
        if self.errors or not self.checks_passed:
            return 1
        return 0
