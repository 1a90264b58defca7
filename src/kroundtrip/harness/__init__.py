from kroundtrip.harness.result import RunResult, WorkerOutcome
from kroundtrip.harness.roundtrip import RoundTripHarness
from kroundtrip.harness.state import HarnessState

__all__ = [
    "HarnessState",
    "RoundTripHarness",
    "RunResult",
    "WorkerOutcome",
]
