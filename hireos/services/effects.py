"""Best-effort side effects with a structured result report.

An operation commits its state first, then runs its effects. Each effect is
isolated: a failure is logged and recorded in the report but never raised,
and never undoes the committed state.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional

import structlog

logger = structlog.get_logger()


@dataclass
class Effect:
    """A named side effect; run() is awaited once."""

    name: str
    run: Callable[[], Awaitable[Any]]
    meta: dict[str, Any] = field(default_factory=dict)


@dataclass
class EffectResult:
    name: str
    ok: bool
    error: Optional[str] = None
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        result = {"name": self.name, "ok": self.ok}
        if self.error:
            result["error"] = self.error
        if self.data:
            result["data"] = self.data
        return result


@dataclass
class EffectReport:
    results: list[EffectResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(r.ok for r in self.results)

    @property
    def failures(self) -> list[EffectResult]:
        return [r for r in self.results if not r.ok]

    def to_list(self) -> list[dict[str, Any]]:
        return [r.to_dict() for r in self.results]


async def run_effect(effect: Effect) -> EffectResult:
    """Run one effect, converting any failure into a failed result."""
    try:
        value = await effect.run()
    except Exception as e:  # noqa: BLE001
        logger.warning(
            "Side effect failed",
            effect=effect.name,
            error=str(e),
            error_type=type(e).__name__,
            **{k: v for k, v in effect.meta.items() if isinstance(v, (str, int))},
        )
        return EffectResult(name=effect.name, ok=False, error=str(e) or type(e).__name__, data=dict(effect.meta))

    data = dict(effect.meta)
    if isinstance(value, dict):
        data.update(value)
    elif value is not None:
        data["result"] = value
    return EffectResult(name=effect.name, ok=True, data=data)


async def run_effects(effects: list[Effect]) -> EffectReport:
    """Run independent effects concurrently and collect their results in order."""
    if not effects:
        return EffectReport()
    results = await asyncio.gather(*(run_effect(e) for e in effects))
    report = EffectReport(results=list(results))
    if report.failures:
        logger.info(
            "Side effects completed with failures",
            failed=[r.name for r in report.failures],
            total=len(report.results),
        )
    return report
