"""Round-trip state machine."""

from __future__ import annotations

from enum import Enum

from kroundtrip.errors import HarnessStateError


class HarnessState(Enum):
    IDLE = "idle"
    TOPIC_READY = "topic_ready"
    SCHEMAS_REGISTERED = "schemas_registered"
    PRODUCING = "producing"
    CONSUMING = "consuming"
    VERIFIED = "verified"
    TORN_DOWN = "torn_down"


# Every state may fall through to TORN_DOWN; teardown runs on all exit paths.
TRANSITIONS: dict[HarnessState, frozenset[HarnessState]] = {
    HarnessState.IDLE: frozenset({HarnessState.TOPIC_READY, HarnessState.TORN_DOWN}),
    HarnessState.TOPIC_READY: frozenset({HarnessState.SCHEMAS_REGISTERED, HarnessState.TORN_DOWN}),
    HarnessState.SCHEMAS_REGISTERED: frozenset({HarnessState.PRODUCING, HarnessState.TORN_DOWN}),
    HarnessState.PRODUCING: frozenset({HarnessState.CONSUMING, HarnessState.TORN_DOWN}),
    HarnessState.CONSUMING: frozenset({HarnessState.VERIFIED, HarnessState.TORN_DOWN}),
    HarnessState.VERIFIED: frozenset({HarnessState.TORN_DOWN}),
    HarnessState.TORN_DOWN: frozenset(),
}


def transition(current: HarnessState, target: HarnessState) -> HarnessState:
    if target not in TRANSITIONS[current]:
        raise HarnessStateError(f"Illegal transition {current.name} -> {target.name}")
    return target
