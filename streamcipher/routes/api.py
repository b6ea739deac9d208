"""
API route definitions for the Stream Cipher API.
"""

import asyncio
import logging

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query

from ..config import get_settings
from ..core.formats import normalize_format
from ..core.invoker import ScriptInvoker, get_invoker
from ..extractors import ExtractionError, YouTubeExtractor
from ..extractors.youtube import build_formats_response, get_video_id
from ..models.enums import MediaType, Quality
from ..models.formats import RawFormat
from ..models.request import FormatsRequest, FunctionsRequest
from ..models.response import ErrorResponse, FormatsResponse, FunctionsResponse, SnippetInfo

logger = logging.getLogger(__name__)

router = APIRouter()

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid input"},
    422: {"model": ErrorResponse, "description": "Validation error"},
    500: {"model": ErrorResponse, "description": "Extraction failed"},
    502: {"model": ErrorResponse, "description": "Upstream request failed"},
}


def get_extractor() -> YouTubeExtractor:
    return YouTubeExtractor()


def get_script_invoker() -> ScriptInvoker:
    return get_invoker()


def _error(status_code: int, message: str, error_code: str) -> HTTPException:
    return HTTPException(
        status_code=status_code,
        detail={"success": False, "error": message, "error_code": error_code},
    )


def _internal_error(e: Exception) -> HTTPException:
    logger.exception("Unexpected error: %s", e)
    # Do not leak exception details in production
    message = str(e) if get_settings().debug else "An internal error occurred. Please try again later."
    return _error(500, message, "internal.error")


def _snippet_info(snippet) -> SnippetInfo | None:
    if snippet is None:
        return None
    return SnippetInfo(name=snippet.name, entry_point=snippet.entry_point, source=snippet.source)


@router.post(
    "/formats",
    response_model=FormatsResponse,
    response_model_exclude_none=True,
    responses=_ERROR_RESPONSES,
    summary="Resolve and rank caller-supplied formats",
    description=(
        "Takes raw streamingData format entries and the player script they belong to. "
        "Returns every format with a playable URL and derived fields, plus the chosen one."
    ),
)
async def resolve_formats(
    request: FormatsRequest,
    extractor: YouTubeExtractor = Depends(get_extractor),
):
    try:
        raw_formats = [RawFormat.model_validate(f) for f in request.formats]
    except ValueError as e:
        raise _error(400, f"Invalid format entry: {e}", "formats.invalid")

    try:
        functions = await extractor.get_player_functions(request.player_url)
        invoker = extractor.invoker
        formats = await asyncio.to_thread(
            lambda: [normalize_format(f, functions, invoker) for f in raw_formats]
        )
        return build_formats_response(
            formats,
            request.media_type,
            request.quality,
            player_url=request.player_url,
            functions=functions,
        )
    except ExtractionError as e:
        raise _error(400, str(e), e.error_code or "extraction.failed")
    except httpx.HTTPError as e:
        logger.warning("Player download failed: %s", e)
        raise _error(502, f"Could not download player script: {e}", "player.unavailable")
    except Exception as e:
        raise _internal_error(e)
    finally:
        await extractor.close()


@router.get(
    "/video/{video_id}",
    response_model=FormatsResponse,
    response_model_exclude_none=True,
    responses=_ERROR_RESPONSES,
    summary="Fetch, resolve and rank the formats of a video",
    description="Accepts a video ID or any watch, shorts, embed or youtu.be URL.",
)
async def video_formats(
    video_id: str,
    media_type: MediaType = Query(MediaType.BOTH, description="video, audio or both"),
    quality: Quality = Query(Quality.HIGHEST, description="highest or lowest"),
    extractor: YouTubeExtractor = Depends(get_extractor),
):
    resolved_id = get_video_id(video_id)
    if resolved_id is None:
        raise _error(400, f"Not a valid video ID or URL: {video_id}", "video.invalid_id")

    logger.info(f"Resolving formats of {resolved_id} ({media_type.value}, {quality.value})")

    try:
        return await extractor.extract(resolved_id, media_type, quality)
    except ExtractionError as e:
        raise _error(500, str(e), e.error_code or "extraction.failed")
    except httpx.HTTPError as e:
        logger.warning("Upstream request failed for %s: %s", resolved_id, e)
        raise _error(502, f"Upstream request failed: {e}", "upstream.failed")
    except Exception as e:
        raise _internal_error(e)
    finally:
        await extractor.close()


@router.post(
    "/functions",
    response_model=FunctionsResponse,
    responses=_ERROR_RESPONSES,
    summary="Extract the decipher and n-transform functions of a player",
)
async def player_functions(
    request: FunctionsRequest,
    extractor: YouTubeExtractor = Depends(get_extractor),
):
    try:
        functions = await extractor.get_player_functions(request.player_url)
    except ExtractionError as e:
        raise _error(400, str(e), e.error_code or "extraction.failed")
    except httpx.HTTPError as e:
        logger.warning("Player download failed: %s", e)
        raise _error(502, f"Could not download player script: {e}", "player.unavailable")
    finally:
        await extractor.close()

    return FunctionsResponse(
        player_url=request.player_url,
        decipher=_snippet_info(functions.decipher),
        n_transform=_snippet_info(functions.n_transform),
    )


@router.get(
    "/health",
    summary="Health check",
    description="Check the health of the API and the JavaScript runtime used for player functions.",
)
async def health_check(invoker: ScriptInvoker = Depends(get_script_invoker)):
    runtime = getattr(invoker, "runtime_name", None)
    return {
        "status": "healthy" if runtime else "degraded",
        "version": "1.0.0",
        "js_runtime": {"available": runtime is not None, "name": runtime},
    }
