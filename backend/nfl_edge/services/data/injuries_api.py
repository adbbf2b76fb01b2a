"""ESPN NFL injury report client.

Normalization is deterministic: the reported status maps straight to a
severity, so the same feed always yields the same signals.
"""

from dataclasses import dataclass
from typing import Any

import httpx
import structlog

from nfl_edge.config import Settings, settings as default_settings
from nfl_edge.schemas import InjuryContent
from nfl_edge.services.data.http import request_with_retry

logger = structlog.get_logger()

SOURCE_NAME = "ESPN"
SOURCE_CONFIDENCE = 0.8

# Severity by reported status (1.0 = certain to miss the game)
STATUS_SEVERITY = {
    "out": 1.0,
    "injured reserve": 1.0,
    "ir": 1.0,
    "doubtful": 0.75,
    "questionable": 0.5,
    "day-to-day": 0.4,
    "probable": 0.2,
}
DEFAULT_SEVERITY = 0.5


def status_severity(status: str | None) -> float:
    if not status:
        return DEFAULT_SEVERITY
    return STATUS_SEVERITY.get(status.strip().lower(), DEFAULT_SEVERITY)


@dataclass
class InjuryReport:
    """One player on a team's injury report."""

    team: str
    player: str
    position: str | None
    status: str | None
    injury_type: str | None

    @property
    def severity(self) -> float:
        return status_severity(self.status)

    def to_content(self) -> InjuryContent:
        return InjuryContent(
            team=self.team,
            player=self.player,
            position=self.position,
            status=self.status,
            injury_type=self.injury_type,
            severity=self.severity,
        )


def parse_injuries(data: dict[str, Any]) -> list[InjuryReport]:
    """Flatten ESPN's per-team injury lists, skipping entries without a team or player."""
    reports = []
    for team_data in data.get("injuries", []):
        team = (team_data.get("team") or {}).get("displayName") or team_data.get("displayName")
        if not team:
            continue
        for injury in team_data.get("injuries", []):
            athlete = injury.get("athlete") or {}
            player = athlete.get("displayName")
            if not player:
                continue
            reports.append(
                InjuryReport(
                    team=team,
                    player=player,
                    position=(athlete.get("position") or {}).get("abbreviation"),
                    status=injury.get("status"),
                    injury_type=(injury.get("details") or {}).get("type"),
                )
            )
    return reports


class ESPNInjuryClient:
    """Client for the public ESPN NFL injuries feed."""

    URL = "https://site.api.espn.com/apis/site/v2/sports/football/nfl/injuries"

    def __init__(
        self,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.settings = settings or default_settings
        self.transport = transport

    async def get_injuries(self) -> list[InjuryReport]:
        """
        Fetch and flatten the current league-wide injury report.

        Raises:
            FetchError: The feed could not be reached after retries
        """
        async with httpx.AsyncClient(
            transport=self.transport, timeout=self.settings.http_timeout_seconds
        ) as client:
            response = await request_with_retry(
                client,
                self.URL,
                source="injury",
                max_retries=self.settings.http_max_retries,
                retry_delay=self.settings.http_retry_base_delay,
            )

        reports = parse_injuries(response.json())
        logger.info("Fetched injury report", injuries=len(reports))
        return reports
