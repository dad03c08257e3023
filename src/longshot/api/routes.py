"""API route definitions."""

from __future__ import annotations

import base64
from pathlib import PurePath
from typing import TYPE_CHECKING, Annotated
from urllib.parse import quote

from fastapi import APIRouter, Depends, Form, Request, UploadFile, status
from fastapi.responses import Response

from longshot.api.errors import ApiError
from longshot.api.middleware import verify_api_key
from longshot.api.schemas import (
    DefaultsResponse,
    ErrorResponse,
    HealthResponse,
    SliceInfo,
    SliceResponse,
)
from longshot.errors import ImageTooLargeError
from longshot.pipeline.slicer import SliceOptions, SliceStrategy

if TYPE_CHECKING:
    from longshot.config import Settings
    from longshot.imaging.codec import ImageCodec
    from longshot.imaging.image import Image
    from longshot.pdf import PdfAssembler
    from longshot.pipeline.pool import SlicingPool
    from longshot.pipeline.slicer import Slice

router = APIRouter(prefix="/api/v1", dependencies=[Depends(verify_api_key)])

DEFAULT_PDF_NAME = "longshot"

_ERROR_RESPONSES: dict[int | str, dict[str, object]] = {
    status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
    413: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
    status.HTTP_503_SERVICE_UNAVAILABLE: {"model": ErrorResponse},
}

Sensitivity = Annotated[int | None, Form(ge=0, le=100, description="Line detection sensitivity (0-100)")]
Sharpen = Annotated[bool | None, Form(description="Apply the sharpening filter before trimming")]
Strategy = Annotated[SliceStrategy | None, Form(description="'lines' (default) or legacy 'fixed_height'")]
MaxHeight = Annotated[int | None, Form(ge=1, description="Rows per slice for the fixed_height strategy")]
Overlap = Annotated[int | None, Form(ge=0, description="Rows shared by adjacent fixed_height slices")]
Margin = Annotated[float | None, Form(ge=0, description="PDF page margin in points")]


def _get_settings(request: Request) -> Settings:
    settings: Settings = request.app.state.settings
    return settings


def _get_slicing_pool(request: Request) -> SlicingPool:
    pool: SlicingPool = request.app.state.slicing_pool
    return pool


def _get_codec(request: Request) -> ImageCodec:
    codec: ImageCodec = request.app.state.codec
    return codec


def _get_pdf_assembler(request: Request) -> PdfAssembler:
    assembler: PdfAssembler = request.app.state.pdf_assembler
    return assembler


def _build_options(
    settings: Settings,
    sensitivity: int | None,
    sharpen: bool | None,
    strategy: SliceStrategy | None,
    max_height: int | None,
    overlap: int | None,
) -> SliceOptions:
    return SliceOptions(
        sensitivity=settings.default_sensitivity if sensitivity is None else sensitivity,
        sharpen=settings.default_sharpen if sharpen is None else sharpen,
        strategy=strategy or SliceStrategy.LINES,
        max_height=settings.default_max_height if max_height is None else max_height,
        overlap=settings.default_overlap if overlap is None else overlap,
    )


async def _read_upload(file: UploadFile, settings: Settings) -> bytes:
    limit = settings.max_file_size
    if file.size is not None and file.size > limit:
        raise ImageTooLargeError(f"Upload is {file.size} bytes, limit is {limit}")
    # Read one byte past the limit so an unsized upload is never buffered whole.
    data = await file.read(limit + 1)
    if len(data) > limit:
        raise ImageTooLargeError(f"Upload exceeds {limit} bytes")
    return data


async def _decode_and_slice(request: Request, data: bytes, options: SliceOptions) -> tuple[Image, list[Slice]]:
    pool = _get_slicing_pool(request)
    codec = _get_codec(request)
    try:
        image = await pool.run(codec.decode, data)
        return image, await pool.slice(image, options)
    except TimeoutError:
        raise _server_busy() from None


def _server_busy() -> ApiError:
    return ApiError(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail="Server is busy, please retry",
        kind="busy",
    )


def _to_data_url(codec: ImageCodec, image: Image) -> str:
    return "data:image/png;base64," + base64.b64encode(codec.encode(image)).decode("ascii")


def _content_disposition(upload_name: str | None) -> str:
    stem = PurePath(upload_name).stem if upload_name else ""
    filename = f"{stem or DEFAULT_PDF_NAME}.pdf"
    fallback = filename.encode("ascii", "replace").decode("ascii").replace('"', "_").replace("?", "_")
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename)}"


@router.post(
    "/slices",
    response_model=SliceResponse,
    responses=_ERROR_RESPONSES,
    summary="Slice a long screenshot and return PNG previews",
)
async def create_slices(
    request: Request,
    file: UploadFile,
    sensitivity: Sensitivity = None,
    sharpen: Sharpen = None,
    strategy: Strategy = None,
    max_height: MaxHeight = None,
    overlap: Overlap = None,
) -> SliceResponse:
    """Split an uploaded image at its black lines and return each trimmed slice."""
    settings = _get_settings(request)
    options = _build_options(settings, sensitivity, sharpen, strategy, max_height, overlap)
    data = await _read_upload(file, settings)
    image, slices = await _decode_and_slice(request, data, options)

    codec = _get_codec(request)
    return SliceResponse(
        source_width=image.width,
        source_height=image.height,
        slices=[
            SliceInfo(
                index=index,
                start_y=item.region.start_y,
                end_y=item.region.end_y,
                width=item.width,
                height=item.height,
                data_url=_to_data_url(codec, item.image),
            )
            for index, item in enumerate(slices)
        ],
    )


@router.post(
    "/pdf",
    response_class=Response,
    responses={
        **_ERROR_RESPONSES,
        status.HTTP_200_OK: {"content": {"application/pdf": {}}, "description": "One slice per page"},
    },
    summary="Slice a long screenshot into a PDF",
)
async def create_pdf(
    request: Request,
    file: UploadFile,
    sensitivity: Sensitivity = None,
    sharpen: Sharpen = None,
    strategy: Strategy = None,
    max_height: MaxHeight = None,
    overlap: Overlap = None,
    margin: Margin = None,
) -> Response:
    """Slice an uploaded image and place each slice on its own PDF page."""
    settings = _get_settings(request)
    options = _build_options(settings, sensitivity, sharpen, strategy, max_height, overlap)
    data = await _read_upload(file, settings)
    _, slices = await _decode_and_slice(request, data, options)

    assembler = _get_pdf_assembler(request)
    page_margin = settings.default_margin if margin is None else margin
    try:
        pdf_bytes = await _get_slicing_pool(request).run(assembler.assemble, slices, page_margin)
    except TimeoutError:
        raise _server_busy() from None

    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": _content_disposition(file.filename)},
    )


@router.get(
    "/defaults",
    response_model=DefaultsResponse,
    summary="Default slicing options",
)
async def defaults(request: Request) -> DefaultsResponse:
    """Return the options used when a request leaves a field out."""
    settings = _get_settings(request)
    return DefaultsResponse(
        sensitivity=settings.default_sensitivity,
        sharpen=settings.default_sharpen,
        margin=settings.default_margin,
        strategy=SliceStrategy.LINES,
        max_height=settings.default_max_height,
        overlap=settings.default_overlap,
    )


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
)
async def health(request: Request) -> HealthResponse:
    """Return service health status."""
    pool = _get_slicing_pool(request)
    return HealthResponse(
        status="ok",
        concurrent_requests=pool.active_count,
        queue_depth=pool.queue_depth,
    )
