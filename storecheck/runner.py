"""
Sequential runner for scenario sequences.

Validates the sequence up front (positions strictly increasing, every
dependency established by setup or an earlier scenario), then runs the
scenarios one at a time.  A failing scenario is recorded and the run moves
on; only assertion and transport failures are caught.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field

from storecheck.errors import AssertionFailure, SequenceError, TransportFailure
from storecheck.scenarios import Scenario, ScenarioContext
from storecheck.session import Requirement

logger = logging.getLogger(__name__)

# Established by the setup phase before the first scenario runs.
SETUP_PROVIDES = frozenset({Requirement.CREDENTIALS})


@dataclass
class ScenarioResult:
    position: int
    name: str
    passed: bool
    latency_ms: float = 0.0
    detail: str = ""


@dataclass
class RunReport:
    results: list[ScenarioResult] = field(default_factory=list)

    def record(self, r: ScenarioResult):
        self.results.append(r)
        status = "PASS" if r.passed else "FAIL"
        detail_str = f"  ({r.detail})" if r.detail else ""
        print(f"  [{status}] {r.position:>2}. {r.name:<45} {r.latency_ms:>9.1f}ms{detail_str}")

    @property
    def passed(self) -> int:
        return sum(1 for r in self.results if r.passed)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.passed)

    @property
    def ok(self) -> bool:
        return self.failed == 0

    def summary(self) -> bool:
        total = len(self.results)
        print(f"\n{'=' * 80}")
        print(f"  RESULTS: {self.passed}/{total} passed, {self.failed} failed")
        if self.results:
            lats = [r.latency_ms for r in self.results]
            print(f"  LATENCY: min={min(lats):.1f}ms  avg={sum(lats)/len(lats):.1f}ms  max={max(lats):.1f}ms")
        print(f"{'=' * 80}")

        if self.failed:
            print("\n  FAILURES:")
            for r in self.results:
                if not r.passed:
                    print(f"    - {r.position}. {r.name}: {r.detail}")
        return self.ok


def validate_sequence(scenarios: list[Scenario]) -> None:
    """Raise ``SequenceError`` if the order or the dependencies are broken."""
    available = set(SETUP_PROVIDES)
    previous: Scenario | None = None
    for sc in scenarios:
        if previous is not None and sc.position <= previous.position:
            raise SequenceError(
                f"Scenario '{sc.name}' at position {sc.position} must come after "
                f"'{previous.name}' at position {previous.position}"
            )
        missing = sc.requires - available
        if missing:
            names = ", ".join(sorted(m.value for m in missing))
            raise SequenceError(f"Scenario {sc.position} '{sc.name}' needs {names} before any step provides it")
        available |= sc.provides
        previous = sc


class SequenceRunner:
    """Runs a validated scenario sequence against one session."""

    def __init__(self, scenarios: list[Scenario]):
        validate_sequence(scenarios)
        self._scenarios = list(scenarios)

    @property
    def scenarios(self) -> list[Scenario]:
        return list(self._scenarios)

    def setup(self, ctx: ScenarioContext) -> None:
        if not ctx.session.has(Requirement.CREDENTIALS):
            ctx.session.generate_credentials(ctx.config.username_prefix, ctx.config.password)

    def run_one(self, sc: Scenario, ctx: ScenarioContext) -> ScenarioResult:
        t0 = time.perf_counter()
        try:
            for requirement in sorted(sc.requires, key=lambda r: r.value):
                ctx.session.require(requirement)
            sc.action(ctx)
        except (AssertionFailure, TransportFailure) as exc:
            lat = (time.perf_counter() - t0) * 1000
            kind = "TRANSPORT" if isinstance(exc, TransportFailure) else type(exc).__name__
            logger.warning("Scenario %d '%s' failed: %s", sc.position, sc.name, exc)
            return ScenarioResult(sc.position, sc.name, False, lat, f"{kind}: {exc}")
        lat = (time.perf_counter() - t0) * 1000
        logger.debug("Scenario %d '%s' passed in %.1fms", sc.position, sc.name, lat)
        return ScenarioResult(sc.position, sc.name, True, lat)

    def run(self, ctx: ScenarioContext, report: RunReport | None = None) -> RunReport:
        report = report if report is not None else RunReport()
        self.setup(ctx)
        logger.info("Running %d scenario(s) against %s", len(self._scenarios), ctx.executor.base_url)
        for sc in self._scenarios:
            report.record(self.run_one(sc, ctx))
        logger.info("Run finished: %d passed, %d failed", report.passed, report.failed)
        return report
