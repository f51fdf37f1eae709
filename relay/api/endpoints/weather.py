from typing import Optional
from fastapi import APIRouter, Depends, Query
from relay.api.deps import get_weather_client, require_param
from relay.core.exceptions import InvalidParameterException
from relay.external.weather_client import TIMELINES, UNITS, WeatherClient
from relay.schemas.media import RelayResponse

router = APIRouter()


@router.get("/weather", response_model=RelayResponse)
async def get_weather(
    city: Optional[str] = Query(None, description="City name"),
    units: str = Query("metric", description="metric or imperial"),
    timesteps: str = Query("1d", description="1h (hourly) or 1d (daily)"),
    days: Optional[int] = Query(None, ge=1, le=120, description="Number of forecast entries to return"),
    weather: WeatherClient = Depends(get_weather_client)
):
    """Weather forecast for a city from Tomorrow.io."""
    city = require_param(city, "city")
    if units not in UNITS:
        raise InvalidParameterException(detail=f"Parameter 'units' must be one of: {', '.join(UNITS)}.")
    if timesteps not in TIMELINES:
        raise InvalidParameterException(
            detail=f"Parameter 'timesteps' must be one of: {', '.join(TIMELINES)}."
        )

    forecast = await weather.forecast(city, units=units, timesteps=timesteps, horizon=days)
    return RelayResponse(message="Forecast retrieved.", data=forecast)
