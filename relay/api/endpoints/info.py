from typing import Any, Dict, List
from fastapi import APIRouter, Request
from relay.config import Settings

router = APIRouter()

# Endpoint catalog published on GET /api, keyed by service; paths are relative to API_PREFIX
KEY_ENDPOINTS: List[Dict[str, Any]] = [
    {
        "path": "/generate-api-key",
        "method": "POST",
        "description": "Generates a new API key valid for 30 days.",
        "parameters": [
            {"name": "apiName", "type": "string", "required": True, "description": "Name of the application using the key."}
        ],
        "example_request": {"method": "POST", "body": {"apiName": "My App"}},
        "example_response": {
            "status": 200,
            "body": {
                "message": "API key generated successfully.",
                "apiKey": "generated-api-key",
                "expirationDate": "2025-01-07T00:00:00.000Z"
            }
        },
        "status_codes": {"200": "Success", "400": "API name is required."}
    },
]

SERVICE_ENDPOINTS: Dict[str, List[Dict[str, Any]]] = {
    "music": [
        {
            "path": "/music",
            "method": "GET",
            "description": "Searches YouTube for a song or video.",
            "parameters": [
                {"name": "query", "type": "string", "required": True, "description": "Song or video name."},
                {"name": "limit", "type": "integer", "required": False, "description": "Number of results (1-10)."}
            ],
            "example_request": "GET /api/music?query=song+name",
            "example_response": {
                "status": 200,
                "body": {
                    "message": "Results found.",
                    "data": {
                        "title": "Song name",
                        "videoUrl": "https://www.youtube.com/watch?v=VIDEO_ID",
                        "thumbnail": "https://i.ytimg.com/vi/VIDEO_ID/hqdefault.jpg"
                    }
                }
            },
            "status_codes": {
                "200": "Success",
                "400": "Parameter 'query' is required.",
                "404": "No video found.",
                "500": "Error searching YouTube."
            }
        },
        {
            "path": "/music/download",
            "method": "GET",
            "description": "Downloads the audio of the best matching YouTube video as MP3.",
            "parameters": [
                {"name": "query", "type": "string", "required": True, "description": "Song or video name."}
            ],
            "headers": [{"name": "X-API-Key", "required": True}],
            "example_request": "GET /api/music/download?query=song+name",
            "status_codes": {
                "200": "MP3 file",
                "400": "Parameter 'query' is required.",
                "401": "API key is required.",
                "403": "Invalid or expired API key.",
                "404": "Video not found on YouTube.",
                "500": "Error processing the audio."
            }
        },
    ],
    "photos": [
        {
            "path": "/photo-search",
            "method": "GET",
            "description": "Searches stock photos on Pexels.",
            "parameters": [
                {"name": "query", "type": "string", "required": False, "description": "Search term."},
                {"name": "per_page", "type": "integer", "required": False, "description": "Number of photos (1-80)."}
            ],
            "example_request": "GET /api/photo-search?query=beach",
            "status_codes": {"200": "Success", "500": "Error searching photos."}
        },
    ],
    "weather": [
        {
            "path": "/weather",
            "method": "GET",
            "description": "Weather forecast for a city.",
            "parameters": [
                {"name": "city", "type": "string", "required": True, "description": "City name."},
                {"name": "units", "type": "string", "required": False, "description": "metric or imperial."},
                {"name": "timesteps", "type": "string", "required": False, "description": "1h or 1d."},
                {"name": "days", "type": "integer", "required": False, "description": "Number of forecast entries."}
            ],
            "example_request": "GET /api/weather?city=Maputo",
            "status_codes": {"200": "Success", "400": "Parameter 'city' is required.", "500": "Error fetching the forecast."}
        },
    ],
    "chat": [
        {
            "path": "/tina/messages",
            "method": "GET",
            "description": "Talks to the Tina assistant.",
            "parameters": [
                {"name": "query", "type": "string", "required": True, "description": "Message for Tina."},
                {"name": "context", "type": "string", "required": False, "description": "Earlier conversation."},
                {"name": "user", "type": "string", "required": False, "description": "Caller identifier."}
            ],
            "example_request": "GET /api/tina/messages?query=hello",
            "status_codes": {"200": "Success", "400": "Parameter 'query' is required.", "500": "Error generating the reply."}
        },
    ],
}


def build_descriptor(settings: Settings, policy) -> Dict[str, Any]:
    """Static description of the service and of every enabled endpoint."""
    endpoints = [dict(entry) for entry in KEY_ENDPOINTS]
    for service, entries in SERVICE_ENDPOINTS.items():
        if settings.is_enabled(service):
            endpoints.extend(dict(entry) for entry in entries)

    for entry in endpoints:
        entry["path"] = f"{settings.API_PREFIX}{entry['path']}"
        entry["access"] = policy.access_for(entry["path"]).value

    return {
        "name": settings.PROJECT_NAME,
        "version": settings.VERSION,
        "development_day": settings.DEVELOPMENT_DAY,
        "description": "Relay API for YouTube music search and MP3 download, stock photos, weather forecasts and the Tina assistant.",
        "author": settings.API_AUTHOR,
        "owner": settings.API_OWNER,
        "info": settings.INFO_USE,
        "routes": ", ".join(entry["path"] for entry in endpoints),
        "endpoints": endpoints,
        "contact": {
            "email": settings.CONTACT_EMAIL,
            "website": settings.CONTACT_WEBSITE
        },
        "limits": {
            "rate_limit": settings.RATE_LIMIT_DEFAULT if settings.RATE_LIMIT_ENABLED else None
        },
        "faq": [
            {
                "question": "How do I get an API key?",
                "answer": f"Send a POST request to {settings.API_PREFIX}/generate-api-key with your application name, or open that page in a browser."
            },
            {
                "question": "How long is a key valid?",
                "answer": f"{settings.API_KEY_LIFETIME_DAYS} days from the moment it is generated."
            },
            {
                "question": "What is the usage limit?",
                "answer": f"{settings.RATE_LIMIT_DEFAULT} per client address." if settings.RATE_LIMIT_ENABLED else "No rate limit is configured."
            }
        ]
    }


@router.get("")
async def api_info(request: Request):
    """Service descriptor: name, version and endpoint catalog."""
    return build_descriptor(request.app.state.settings, request.app.state.route_policy)
