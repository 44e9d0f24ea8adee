from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from brevly_app.config import settings
from brevly_app.dependencies import get_link_service
from brevly_app.schemas.link import (
    ExportResponse,
    LinkCreate,
    LinkPage,
    LinkRead,
    LinkUpdate,
    MessageResponse,
    OriginalUrlResponse,
)
from brevly_app.services.link_service import LinkService
from brevly_app.services.result import Failure, LinkErrorType

router = APIRouter(prefix="/links", tags=["links"])

ERROR_STATUS = {
    LinkErrorType.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    LinkErrorType.DUPLICATE_SHORTENED_URL: status.HTTP_409_CONFLICT,
    LinkErrorType.INVALID_DATA: status.HTTP_400_BAD_REQUEST,
    LinkErrorType.EXPORT_FAILED: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

NOT_FOUND = {404: {"model": MessageResponse, "description": "Link not found"}}
CONFLICT = {409: {"model": MessageResponse, "description": "Shortened URL already in use"}}


def error_response(result: Failure) -> JSONResponse:
    """Translate a service failure into its HTTP response"""
    return JSONResponse(
        status_code=ERROR_STATUS[result.error.type],
        content={"message": result.error.message},
    )


@router.post(
    "",
    response_model=LinkRead,
    status_code=status.HTTP_201_CREATED,
    responses={**CONFLICT},
)
async def create_link(
    link_data: LinkCreate,
    link_service: LinkService = Depends(get_link_service)
):
    """Create a new shortened link"""
    result = await link_service.create_link(link_data.original_url, link_data.shortened_url)
    if not result.ok:
        return error_response(result)
    return result.value


@router.get("", response_model=LinkPage, response_model_exclude_none=True)
async def list_links(
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    cursor: Optional[str] = Query(None, description="Id of the last link of the previous page"),
    link_service: LinkService = Depends(get_link_service)
):
    """Paginated list of links, oldest first"""
    return await link_service.list_links(limit, cursor)


# Registered before /{shortened_url} so "export" isn't taken as a key
@router.get(
    "/export",
    response_model=ExportResponse,
    responses={500: {"model": MessageResponse, "description": "Export failed"}},
)
async def export_links(link_service: LinkService = Depends(get_link_service)):
    """Export all links to a CSV file and return its download URL"""
    result = await link_service.export_links_to_csv_file()
    if not result.ok:
        return error_response(result)
    return ExportResponse(report_url=result.value)


@router.get("/{shortened_url}", response_model=OriginalUrlResponse, responses={**NOT_FOUND})
async def get_original_url(
    shortened_url: str,
    link_service: LinkService = Depends(get_link_service)
):
    """Get the original URL for a shortened URL"""
    result = await link_service.get_original_url(shortened_url)
    if not result.ok:
        return error_response(result)
    return OriginalUrlResponse(original_url=result.value)


@router.patch(
    "/{shortened_url}",
    response_model=LinkRead,
    responses={**NOT_FOUND, **CONFLICT, 400: {"model": MessageResponse}},
)
async def update_link(
    shortened_url: str,
    link_data: LinkUpdate,
    link_service: LinkService = Depends(get_link_service)
):
    """Update the original URL and/or the shortened URL of a link"""
    result = await link_service.update_link(
        shortened_url,
        original_url=link_data.original_url,
        shortened_url=link_data.shortened_url,
    )
    if not result.ok:
        return error_response(result)
    return result.value


@router.patch(
    "/{shortened_url}/access",
    response_class=PlainTextResponse,
    responses={**NOT_FOUND},
)
async def increment_access_count(
    shortened_url: str,
    link_service: LinkService = Depends(get_link_service)
):
    """
    Count one visit and return the original URL.
    
    The frontend redirect page calls this, then navigates to the returned URL.
    """
    result = await link_service.increment_access_count(shortened_url)
    if not result.ok:
        return error_response(result)
    return result.value


@router.delete(
    "/{shortened_url}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses={**NOT_FOUND},
)
async def delete_link(
    shortened_url: str,
    link_service: LinkService = Depends(get_link_service)
):
    """Permanently delete a link"""
    result = await link_service.delete_link(shortened_url)
    if not result.ok:
        return error_response(result)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
