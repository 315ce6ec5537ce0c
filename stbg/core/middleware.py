"""
@file middleware.py
@brief Custom middleware for error handling and request processing

@details
Provides centralized middleware for:
- Converting escaped analysis input errors into 400 responses
- Providing consistent error responses for anything unexpected

@author STBG Project
@date 2026-10-18
@version 1.0
@license AGPL-3.0
"""

import logging
from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from stbg.core.exceptions import AnalysisInputError

logger = logging.getLogger(__name__)


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """
    @brief Middleware catching errors that escaped the route handlers

    @details
    Exception handlers registered on the app run first; this is the last
    line for errors raised outside of them (e.g. in dependencies or other
    middleware).
    """

    async def dispatch(self, request: Request, call_next):
        """
        @brief Process request and catch unhandled errors

        @param request The HTTP request
        @param call_next The next middleware/route handler
        @return Response or error response
        """
        try:
            response = await call_next(request)
            return response
        except AnalysisInputError as e:
            logger.warning(f"Input error handling {request.method} {request.url.path}: {e}")
            return JSONResponse(status_code=400, content=e.to_dict())
        except Exception as e:
            logger.exception(f"Unexpected error handling {request.method} {request.url.path}: {e}")
            return JSONResponse(
                status_code=500,
                content={
                    "error": "Internal server error",
                    "message": "An unexpected error occurred. Please try again later.",
                    "status": "error"
                }
            )
