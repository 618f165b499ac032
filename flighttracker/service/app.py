# Copyright 2026 Firefly Software Solutions Inc
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
FastAPI application exposing the search-flights action.

Example Usage:
    Start the service:
    ```bash
    uvicorn flighttracker.service.app:app --host 0.0.0.0 --port 8000
    ```

    Search:
    ```bash
    curl -X POST http://localhost:8000/actions/search-flights \\
      -H "X-API-Key: your-api-key" \\
      -H "Content-Type: application/json" \\
      -d '{
        "origin": "Johannesburg",
        "destination": "Athens",
        "departDate": "June 15, 2026",
        "returnDate": "June 29, 2026"
      }'
    ```

The action answers 200 for both successful and failed searches; the
"success" field tells them apart.
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import Callable, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse

from flighttracker import __version__
from flighttracker.config import TrackerConfig
from flighttracker.core.search import FlightSearch
from flighttracker.core.sites import list_sites
from flighttracker.exceptions import ConfigurationError
from flighttracker.models import SearchRequest, SearchResponse
from flighttracker.service.auth import APIKeyManager, verify_api_key
from flighttracker.service.models import ErrorResponse, HealthResponse
from flighttracker.utils.logger import logger

SearchFactory = Callable[[], FlightSearch]


def _default_search() -> FlightSearch:
    return FlightSearch(TrackerConfig.from_env())


def create_app(
    search_factory: Optional[SearchFactory] = None,
    api_key_manager: Optional[APIKeyManager] = None,
) -> FastAPI:
    """
    Build the service application.

    Args:
        search_factory: Builds the FlightSearch used by every request;
            called once at startup
        api_key_manager: Accepted API keys, defaults to FLIGHTTRACKER_API_KEYS
    """
    search_factory = search_factory or _default_search

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting flighttracker service...")
        app.state.search = search_factory()
        app.state.api_key_manager = api_key_manager or APIKeyManager.from_env()
        app.state.start_time = time.time()
        logger.info("flighttracker service started successfully")

        yield

        logger.info("Shutting down flighttracker service...")
        await app.state.search.close()
        logger.info("flighttracker service shut down")

    app = FastAPI(
        title="flighttracker API",
        description="Autonomous flight search on remote browsers.",
        version=__version__,
        lifespan=lifespan,
        openapi_tags=[
            {"name": "Health", "description": "Service status"},
            {"name": "Actions", "description": "Flight search actions"},
        ],
    )

    @app.exception_handler(Exception)
    async def global_exception_handler(request, exc):
        """Global exception handler."""
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(
                error="InternalServerError",
                message="An unexpected error occurred",
                details={"exception": str(exc)},
            ).model_dump(),
        )

    @app.get("/health", response_model=HealthResponse, tags=["Health"], summary="Health check")
    async def health_check(request: Request):
        """Health check endpoint. Does not require authentication."""
        search: FlightSearch = request.app.state.search
        return HealthResponse(
            status="healthy",
            version=__version__,
            uptime_seconds=time.time() - request.app.state.start_time,
            active_sessions=search.session_manager.active_count,
            sites=list_sites(),
        )

    @app.post(
        "/actions/search-flights",
        response_model=SearchResponse,
        response_model_by_alias=True,
        response_model_exclude_none=True,
        tags=["Actions"],
        summary="Search for flights",
    )
    async def search_flights(
        payload: SearchRequest,
        request: Request,
        site: Optional[str] = Query(None, description="Site to search, defaults to the configured site"),
        api_key: Optional[str] = Depends(verify_api_key),
    ):
        """
        Run one retry-controlled flight search.

        Returns the serialized SearchResponse. A search that fails after every
        attempt still returns 200 with success=false.
        """
        search: FlightSearch = request.app.state.search
        try:
            result = await search.search(payload, site=site)
        except ConfigurationError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
        return search.to_response(payload, result)

    return app


app = create_app()
