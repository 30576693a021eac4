"""OpenAPI document for the Travel Journal API.

Built from the route annotations (summaries, descriptions and declared
responses) and extended with the bearer security scheme the story endpoints
expect.
"""
from typing import Any

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi

API_TITLE = "Travel Agency REST API docs"
API_VERSION = "1.0.0"
API_DESCRIPTION = """
Keep a journal of the places you have been.

## Authentication

`/create-account` and `/login` return an `accessToken`. Send it on every
story request:

```
Authorization: Bearer <accessToken>
```

A missing token answers 401, an invalid or expired one 403.

## Responses

Every body carries `error` (bool) and `message` (string) next to its payload.
"""

TAGS_METADATA = [
    {"name": "User", "description": "Account creation, login and the current user"},
    {"name": "Images", "description": "Upload and remove story images"},
    {"name": "Travel Stories", "description": "Your travel stories, favourites first"},
]

# paths reachable without a token
PUBLIC_PATHS = {"/create-account", "/login", "/image-upload", "/delete-image"}


def custom_openapi(app: FastAPI) -> dict[str, Any]:
    if app.openapi_schema:
        return app.openapi_schema

    schema = get_openapi(
        title=API_TITLE,
        version=API_VERSION,
        description=API_DESCRIPTION,
        routes=app.routes,
        tags=TAGS_METADATA,
    )

    components = schema.setdefault("components", {})
    components.setdefault("securitySchemes", {})["bearerAuth"] = {
        "type": "http",
        "scheme": "bearer",
        "bearerFormat": "JWT",
    }

    for path, operations in schema.get("paths", {}).items():
        if path in PUBLIC_PATHS:
            continue
        for operation in operations.values():
            operation["security"] = [{"bearerAuth": []}]

    app.openapi_schema = schema
    return app.openapi_schema
