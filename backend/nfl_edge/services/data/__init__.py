"""External data source clients."""

from nfl_edge.services.data.injuries_api import ESPNInjuryClient
from nfl_edge.services.data.odds_api import OddsAPIClient
from nfl_edge.services.data.weather_api import WeatherAPIClient

__all__ = ["ESPNInjuryClient", "OddsAPIClient", "WeatherAPIClient"]
