"""Pipeline health checks and alerting over stored pipeline records."""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

import numpy as np
import structlog

from nfl_edge.config import Settings, settings as default_settings
from nfl_edge.schemas import StageResult
from nfl_edge.storage import PipelineStore

logger = structlog.get_logger()

STALE_ODDS_HOURS = 24.0
FAILING_SOURCE_THRESHOLD = 3
CRITICAL_FAILING_SOURCES = 2
BRIER_ALERT_THRESHOLD = 0.25
SPREAD_ERROR_ALERT_THRESHOLD = 10.0
RECENT_EVALUATIONS = 10
MIN_EVALUATIONS_FOR_ALERT = 5
MIN_PREDICTION_COVERAGE = 80.0  # percent


@dataclass
class Alert:
    type: str
    severity: str  # warning, critical
    message: str
    details: dict[str, Any] = field(default_factory=dict)


def _hours_since(moment: datetime, now: datetime) -> float:
    return (now - moment).total_seconds() / 3600


def _overall_status(checks: dict[str, dict[str, Any]]) -> str:
    statuses = {c["status"] for c in checks.values()}
    if "unhealthy" in statuses:
        return "unhealthy"
    if statuses & {"degraded", "stale"}:
        return "degraded"
    return "healthy"


async def check_pipeline_health(
    store: PipelineStore, now: datetime | None = None
) -> dict[str, Any]:
    """
    Check database reachability, odds freshness, source health and prediction activity.

    Overall status is the worst of the individual checks: unhealthy beats
    degraded (or stale), which beats healthy.
    """
    now = now or datetime.now(timezone.utc)
    checks: dict[str, dict[str, Any]] = {}

    if not await store.ping():
        checks["database"] = {"status": "unhealthy"}
        return {"status": "unhealthy", "timestamp": now.isoformat(), "checks": checks}
    checks["database"] = {"status": "healthy"}

    latest = await store.latest_odds_snapshot_time()
    if latest is None:
        checks["data_freshness"] = {"status": "stale", "hours_since_last_update": None}
    else:
        hours = _hours_since(latest, now)
        checks["data_freshness"] = {
            "status": "healthy" if hours < STALE_ODDS_HOURS else "stale",
            "hours_since_last_update": round(hours, 1),
        }

    active = [s for s in await store.list_sources() if s.is_active]
    failing = [s for s in active if s.consecutive_failures >= FAILING_SOURCE_THRESHOLD]
    checks["data_sources"] = {
        "status": "degraded" if failing else "healthy",
        "total_active": len(active),
        "failing": [s.source_type for s in failing],
    }

    count = await store.count_predictions_since(now - timedelta(hours=24))
    checks["predictions"] = {
        "status": "healthy" if count > 0 else "inactive",
        "count_24h": count,
    }

    return {"status": _overall_status(checks), "timestamp": now.isoformat(), "checks": checks}


async def collect_alerts(
    store: PipelineStore,
    settings: Settings | None = None,
    now: datetime | None = None,
) -> list[Alert]:
    settings = settings or default_settings
    now = now or datetime.now(timezone.utc)
    alerts: list[Alert] = []

    # Model performance
    moneyline = await store.list_recent_evaluations("moneyline", RECENT_EVALUATIONS)
    briers = [e.brier_score for e in moneyline if e.brier_score is not None]
    if len(briers) >= MIN_EVALUATIONS_FOR_ALERT:
        mean_brier = float(np.mean(briers))
        if mean_brier > BRIER_ALERT_THRESHOLD:
            alerts.append(
                Alert(
                    type="model_performance",
                    severity="warning",
                    message="Model Brier score degradation detected",
                    details={"mean_brier_score": round(mean_brier, 4), "threshold": BRIER_ALERT_THRESHOLD},
                )
            )

    spread = await store.list_recent_evaluations("spread", RECENT_EVALUATIONS)
    if len(spread) >= MIN_EVALUATIONS_FOR_ALERT:
        mean_error = float(np.mean([e.absolute_error for e in spread]))
        if mean_error > SPREAD_ERROR_ALERT_THRESHOLD:
            alerts.append(
                Alert(
                    type="model_accuracy",
                    severity="critical",
                    message="Spread accuracy significantly decreased",
                    details={"mean_spread_error": round(mean_error, 2), "threshold": SPREAD_ERROR_ALERT_THRESHOLD},
                )
            )

    # Data sources
    failing = [
        s
        for s in await store.list_sources()
        if s.is_active and s.consecutive_failures >= FAILING_SOURCE_THRESHOLD
    ]
    if failing:
        alerts.append(
            Alert(
                type="data_source",
                severity="critical" if len(failing) > CRITICAL_FAILING_SOURCES else "warning",
                message=f"{len(failing)} data source(s) failing",
                details={"sources": [s.source_name or s.source_type for s in failing]},
            )
        )

    # Stale odds
    latest = await store.latest_odds_snapshot_time()
    if latest is not None:
        hours = _hours_since(latest, now)
        if hours > STALE_ODDS_HOURS:
            alerts.append(
                Alert(
                    type="stale_data",
                    severity="warning",
                    message="Odds data is stale",
                    details={"hours_since_update": round(hours, 1)},
                )
            )

    # Prediction coverage
    window_end = now + timedelta(days=settings.upcoming_window_days)
    games, covered = await store.count_games_with_predictions(now, window_end)
    if games:
        coverage = covered / games * 100
        if coverage < MIN_PREDICTION_COVERAGE:
            alerts.append(
                Alert(
                    type="prediction_coverage",
                    severity="warning",
                    message="Low prediction coverage for upcoming games",
                    details={"coverage_pct": round(coverage, 1), "games": games, "covered": covered},
                )
            )

    return alerts


async def run_alert_monitor(
    store: PipelineStore,
    settings: Settings | None = None,
    now: datetime | None = None,
) -> StageResult:
    """Evaluate alert conditions and write each alert to the audit log."""
    result = StageResult(stage="alerts", success=True)
    alerts = await collect_alerts(store, settings, now)

    for alert in alerts:
        try:
            await store.write_audit_log(
                "alert_generated",
                alert.type,
                {"severity": alert.severity, "message": alert.message, "details": alert.details},
            )
            result.processed += 1
        except Exception as e:
            logger.error("Error recording alert", alert_type=alert.type, error=str(e))
            result.record_error(f"{alert.type}: {e}")

    result.details["alerts"] = [asdict(a) for a in alerts]
    logger.info("Alert monitor complete", alerts=len(alerts))
    return result
