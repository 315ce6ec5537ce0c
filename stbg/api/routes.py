"""
@file routes.py
@brief FastAPI API endpoint definitions for the STBG backend

@details
Provides RESTful endpoints for:
- Project prioritization analysis over uploaded GeoJSON datasets
- Criterion registry listing
- Supported coordinate systems and GeoJSON reprojection

@author STBG Project
@date 2026-10-18
@version 1.0
@license AGPL-3.0

@see services.prioritization for the analysis pipeline
@see etl.loader for dataset keys and parsing
"""

import logging
import os
from typing import Dict, Optional

from fastapi import APIRouter, File, Form, HTTPException, UploadFile
from starlette.concurrency import run_in_threadpool

from stbg.core.cache import analysis_cache_key, cache
from stbg.core.exceptions import MissingDatasetsError
from stbg.etl.loader import ALL_DATASETS, REQUIRED_DATASETS, parse_geojson
from stbg.services.criteria import CRITERIA
from stbg.services.prioritization import PrioritizationService
from stbg.spatial.crs import GEOGRAPHIC, describe_registry, get_crs, reproject_collection

## @brief FastAPI router instance for API endpoints
router = APIRouter()

## @brief Module-level logger for request/response debugging
logger = logging.getLogger(__name__)

## @brief Maximum accepted size of one uploaded file
MAX_UPLOAD_BYTES = int(float(os.getenv("STBG_MAX_UPLOAD_MB", "50")) * 1024 * 1024)


async def read_upload(name: str, upload: Optional[UploadFile]) -> Optional[bytes]:
    """
    @brief Read an uploaded file, None when the field was not sent
    @throws HTTPException(413) if the file exceeds the upload limit
    """
    if upload is None:
        return None
    if upload.size is not None and upload.size > MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail=f"File for '{name}' exceeds the upload limit")
    payload = await upload.read(MAX_UPLOAD_BYTES + 1)
    if len(payload) > MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail=f"File for '{name}' exceeds the upload limit")
    return payload


@router.post("/analyze")
async def analyze_projects(
    projects_file: Optional[UploadFile] = File(None),
    crashes_file: Optional[UploadFile] = File(None),
    aadt_file: Optional[UploadFile] = File(None),
    popemp_file: Optional[UploadFile] = File(None),
    t6_file: Optional[UploadFile] = File(None),
    nw_file: Optional[UploadFile] = File(None),
    fhz_file: Optional[UploadFile] = File(None),
    frsk_file: Optional[UploadFile] = File(None),
    wet_file: Optional[UploadFile] = File(None),
    con_file: Optional[UploadFile] = File(None),
    lehd_file: Optional[UploadFile] = File(None),
    actv_file: Optional[UploadFile] = File(None),
    crs: Optional[str] = Form(None),
):
    """
    @brief Rank uploaded projects by composite benefit-cost score

    @details
    Accepts one GeoJSON file per dataset in fields named `<dataset>_file`.
    The ten required datasets are checked before anything is parsed; the
    freight (lehd) and activity-center (actv) files are optional.

    Results are cached in Redis by a digest of the uploaded files, so an
    identical resubmission is answered without recomputation.

    @param crs Registered name of the input coordinate system
               [default: EPSG:4326 longitude/latitude]

    @return JSON with:
    - projects: ranked project records (scores, total_score, bcr, rank)
    - summary: total_projects, total_cost

    @throws 400: Missing required files, unparseable dataset or unknown
                 coordinate system
    @throws 413: Upload larger than STBG_MAX_UPLOAD_MB
    """
    uploads = {
        "projects": projects_file, "crashes": crashes_file, "aadt": aadt_file,
        "popemp": popemp_file, "t6": t6_file, "nw": nw_file,
        "fhz": fhz_file, "frsk": frsk_file, "wet": wet_file, "con": con_file,
        "lehd": lehd_file, "actv": actv_file,
    }
    missing = [name for name in REQUIRED_DATASETS if uploads[name] is None]
    if missing:
        raise MissingDatasetsError(missing)

    service = PrioritizationService(crs=crs)

    payloads: Dict[str, bytes] = {}
    for name in ALL_DATASETS:
        payload = await read_upload(name, uploads[name])
        if payload is not None:
            payloads[name] = payload

    cache_key = analysis_cache_key(payloads, service.crs)
    cached = await cache.get(cache_key)
    if cached:
        logger.info(f"Returning cached analysis for {cache_key}")
        return cached

    datasets = {name: parse_geojson(name, payload) for name, payload in payloads.items()}
    logger.info(f"Running analysis on {len(datasets['projects'])} projects")

    results = await run_in_threadpool(service.run, datasets)
    body = results.model_dump()

    await cache.set(cache_key, body)
    return body


@router.get("/criteria")
def list_criteria():
    """
    @brief Describe the registered prioritization criteria

    @return JSON dict with "criteria": name, cap (null when the score is
            not rescaled), input layers, implemented flag and description
    """
    return {"criteria": [criterion.describe() for criterion in CRITERIA]}


@router.get("/crs")
def list_coordinate_systems():
    """
    @brief Supported coordinate reference systems
    """
    return {"default": GEOGRAPHIC, "systems": describe_registry()}


@router.post("/reproject")
async def reproject_dataset(
    file: UploadFile = File(...),
    target: str = Form(...),
    source: str = Form(GEOGRAPHIC),
):
    """
    @brief Reproject an uploaded GeoJSON FeatureCollection

    @details
    Coordinates that cannot be transformed are returned unchanged.

    @param file GeoJSON FeatureCollection
    @param target Registered target system
    @param source Registered source system [default: EPSG:4326]
    @return GeoJSON FeatureCollection in the target system
    @throws 400: Unknown coordinate system or unparseable file
    """
    get_crs(source)
    get_crs(target)
    payload = await read_upload("file", file)
    collection = parse_geojson("file", payload)
    reprojected = await run_in_threadpool(reproject_collection, collection, target, source)
    return reprojected.to_geojson()
