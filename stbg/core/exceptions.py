"""
@file exceptions.py
@brief Domain exceptions and centralized exception handlers
@details
Defines the validation-gate errors raised before the analysis pipeline runs,
and provides consistent JSON error responses for HTTP exceptions,
validation errors, input errors and unexpected server errors.

@author STBG Project
@date 2026-10-18
@version 1.0
@license AGPL-3.0
"""

import logging
from typing import Any, Dict, Iterable, List

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

logger = logging.getLogger(__name__)


class AnalysisInputError(Exception):
    """
    @brief Base class for input problems detected before computation
    @details
    Raised only by the validation gate; the pipeline never partially runs
    against input that triggered one of these.
    """

    error = "Invalid analysis input"

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.error, "message": str(self)}


class MissingDatasetsError(AnalysisInputError):
    """Raised when one or more required datasets are absent."""

    error = "Missing required files"

    def __init__(self, missing: Iterable[str]):
        self.missing: List[str] = list(missing)
        super().__init__(f"Missing required datasets: {', '.join(self.missing)}")

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        body["missing"] = self.missing
        return body


class DatasetParseError(AnalysisInputError):
    """Raised when an uploaded dataset is not a GeoJSON FeatureCollection."""

    error = "Invalid dataset"

    def __init__(self, dataset: str, reason: str):
        self.dataset = dataset
        self.reason = reason
        super().__init__(f"Dataset '{dataset}' could not be parsed: {reason}")

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        body["dataset"] = self.dataset
        return body


class UnknownCRSError(AnalysisInputError):
    """Raised for a coordinate system name missing from the registry."""

    error = "Unknown coordinate system"

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Coordinate system '{name}' is not registered")


async def http_exception_handler(request: Request, exc: HTTPException):
    """
    @brief Custom HTTP exception handler
    @details Provides consistent error responses across the API.
    """
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": str(exc.detail),
            "status_code": exc.status_code,
            "message": f"Request failed with HTTP {exc.status_code}"
        }
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    @brief Custom validation error handler
    @details Provides user-friendly validation error messages.
    """
    return JSONResponse(
        status_code=422,
        content={
            "error": "Validation error",
            "details": exc.errors(),
            "message": "Request validation failed. Check parameters and try again."
        }
    )


async def analysis_input_exception_handler(request: Request, exc: AnalysisInputError):
    """
    @brief Validation-gate error handler
    @details Reports which inputs were rejected before any computation ran.
    """
    logger.warning(f"Rejected analysis input on {request.url.path}: {exc}")
    return JSONResponse(status_code=400, content=exc.to_dict())


async def general_exception_handler(request: Request, exc: Exception):
    """
    @brief Catch-all exception handler
    @details
    Logs full error for debugging while returning safe message to client.
    """
    logger.exception(f"Unexpected error handling {request.url}: {exc}")

    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "message": "An unexpected error occurred. Please try again later.",
            "status": "error"
        }
    )
