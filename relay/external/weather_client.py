from typing import Any, Dict, Optional
from relay.external.base_client import ExternalAPIClient

# Tomorrow.io timestep -> timeline name in the forecast payload
TIMELINES = {
    "1h": "hourly",
    "1d": "daily",
}
UNITS = ("metric", "imperial")


class WeatherClient(ExternalAPIClient):
    """Client for the Tomorrow.io weather forecast API."""

    service_name = "Weather API"

    @property
    def base_url(self) -> str:
        return self.settings.WEATHER_API_URL

    @property
    def credential(self) -> str:
        return self.settings.WEATHER_API_KEY

    def _get_params(self) -> Dict[str, Any]:
        return {"apikey": self.credential}

    async def forecast(
        self,
        city: str,
        units: str = "metric",
        timesteps: str = "1d",
        horizon: Optional[int] = None
    ) -> Dict[str, Any]:
        """
        Fetch a forecast for a location.

        Args:
            city: Location name (or "lat,lon")
            units: metric or imperial
            timesteps: 1h (hourly) or 1d (daily)
            horizon: Keep only the first N forecast entries

        Returns:
            Location and the requested forecast timeline
        """
        payload = await self._make_request(
            method="GET",
            endpoint="/weather/forecast",
            params={"location": city, "units": units, "timesteps": timesteps}
        )

        timeline = (payload.get("timelines") or {}).get(TIMELINES[timesteps]) or []
        if horizon is not None:
            timeline = timeline[:horizon]

        return {
            "city": city,
            "location": payload.get("location") or {},
            "units": units,
            "timesteps": timesteps,
            "forecast": [
                {"time": entry.get("time"), "values": entry.get("values") or {}}
                for entry in timeline
            ],
        }
