"""NFL stadium locations keyed by home team."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Stadium:
    name: str
    latitude: float
    longitude: float
    indoor: bool = False  # domes and retractable roofs


STADIUMS = {
    s.name: s
    for s in [
        Stadium("State Farm Stadium", 33.5276, -112.2626, indoor=True),
        Stadium("Mercedes-Benz Stadium", 33.7553, -84.4006, indoor=True),
        Stadium("M&T Bank Stadium", 39.2780, -76.6227),
        Stadium("Highmark Stadium", 42.7738, -78.7870),
        Stadium("Bank of America Stadium", 35.2258, -80.8530),
        Stadium("Soldier Field", 41.8623, -87.6167),
        Stadium("Paycor Stadium", 39.0954, -84.5160),
        Stadium("Huntington Bank Field", 41.5061, -81.6995),
        Stadium("AT&T Stadium", 32.7473, -97.0945, indoor=True),
        Stadium("Empower Field at Mile High", 39.7439, -104.9942),
        Stadium("Ford Field", 42.3400, -83.0456, indoor=True),
        Stadium("Lambeau Field", 44.5013, -88.0622),
        Stadium("NRG Stadium", 29.6847, -95.4107, indoor=True),
        Stadium("Lucas Oil Stadium", 39.7601, -86.1639, indoor=True),
        Stadium("EverBank Stadium", 30.3239, -81.6373),
        Stadium("GEHA Field at Arrowhead Stadium", 39.0489, -94.4839),
        Stadium("Allegiant Stadium", 36.0909, -115.1833, indoor=True),
        Stadium("SoFi Stadium", 33.9535, -118.3387, indoor=True),
        Stadium("Hard Rock Stadium", 25.9580, -80.2389),
        Stadium("U.S. Bank Stadium", 44.9738, -93.2575, indoor=True),
        Stadium("Gillette Stadium", 42.0909, -71.2643),
        Stadium("Caesars Superdome", 29.9511, -90.0812, indoor=True),
        Stadium("MetLife Stadium", 40.8135, -74.0745),
        Stadium("Lincoln Financial Field", 39.9008, -75.1675),
        Stadium("Acrisure Stadium", 40.4468, -80.0158),
        Stadium("Levi's Stadium", 37.4032, -121.9698),
        Stadium("Lumen Field", 47.5952, -122.3316),
        Stadium("Raymond James Stadium", 27.9759, -82.5033),
        Stadium("Nissan Stadium", 36.1665, -86.7713),
        Stadium("Northwest Stadium", 38.9076, -76.8645),
    ]
}

# Team names as The Odds API and ESPN spell them
TEAM_STADIUMS = {
    "Arizona Cardinals": "State Farm Stadium",
    "Atlanta Falcons": "Mercedes-Benz Stadium",
    "Baltimore Ravens": "M&T Bank Stadium",
    "Buffalo Bills": "Highmark Stadium",
    "Carolina Panthers": "Bank of America Stadium",
    "Chicago Bears": "Soldier Field",
    "Cincinnati Bengals": "Paycor Stadium",
    "Cleveland Browns": "Huntington Bank Field",
    "Dallas Cowboys": "AT&T Stadium",
    "Denver Broncos": "Empower Field at Mile High",
    "Detroit Lions": "Ford Field",
    "Green Bay Packers": "Lambeau Field",
    "Houston Texans": "NRG Stadium",
    "Indianapolis Colts": "Lucas Oil Stadium",
    "Jacksonville Jaguars": "EverBank Stadium",
    "Kansas City Chiefs": "GEHA Field at Arrowhead Stadium",
    "Las Vegas Raiders": "Allegiant Stadium",
    "Los Angeles Chargers": "SoFi Stadium",
    "Los Angeles Rams": "SoFi Stadium",
    "Miami Dolphins": "Hard Rock Stadium",
    "Minnesota Vikings": "U.S. Bank Stadium",
    "New England Patriots": "Gillette Stadium",
    "New Orleans Saints": "Caesars Superdome",
    "New York Giants": "MetLife Stadium",
    "New York Jets": "MetLife Stadium",
    "Philadelphia Eagles": "Lincoln Financial Field",
    "Pittsburgh Steelers": "Acrisure Stadium",
    "San Francisco 49ers": "Levi's Stadium",
    "Seattle Seahawks": "Lumen Field",
    "Tampa Bay Buccaneers": "Raymond James Stadium",
    "Tennessee Titans": "Nissan Stadium",
    "Washington Commanders": "Northwest Stadium",
}


def venue_for_team(home_team: str) -> str | None:
    """Home stadium name for a team, None for unknown teams."""
    return TEAM_STADIUMS.get(home_team)


def get_stadium(venue: str | None) -> Stadium | None:
    if not venue:
        return None
    return STADIUMS.get(venue)
