"""
Vision API Router - Template location endpoint

The endpoint follows the same pattern as the rest of the API:
1. Validate request (decode images, resolve parameters)
2. Call the service (returns result, thumbnail, timing)
3. Return the response model
"""

import logging

from fastapi import APIRouter, Depends

from api.dependencies import get_locator_service, get_request_timeout
from api.exceptions import safe_endpoint
from domain_types import LocatorConstants
from image.converters import from_base64
from models import LocateRequest, LocateResponse
from services.locator_service import FixedOrientation, InMemoryImageSource

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/template-locate")
@safe_endpoint
async def template_locate(
    request: LocateRequest,
    locator_service=Depends(get_locator_service),
    default_timeout=Depends(get_request_timeout),
) -> LocateResponse:
    """
    Locate a template in an image, including its in-plane rotation.

    INPUT constraints:
    - template must not be larger than the image
    - orientation_hint: optional expected angle, probed first

    OUTPUT results:
    - result.rect: oriented rectangle (center, width, height, angle) when found
    - result.fallback_center: search window center when nothing was found
    """
    working_image = from_base64(request.image_base64)
    template_image = from_base64(request.template_base64)

    params = request.params or locator_service.default_params
    params = params.model_copy(
        update={"template_source_name": LocatorConstants.API_TEMPLATE_NAME}
    )

    source = InMemoryImageSource(working_image)
    source.add_result(LocatorConstants.API_TEMPLATE_NAME, template_image)

    orientation = (
        FixedOrientation(request.orientation_hint)
        if request.orientation_hint is not None
        else None
    )
    timeout_s = request.timeout_ms / 1000.0 if request.timeout_ms else default_timeout

    result, thumbnail_base64, processing_time = locator_service.locate_with_overlay(
        source, params, orientation, timeout_s, request.fail_on_timeout
    )

    logger.info(
        f"Template locate: found={result.found} score={result.score:.3f} "
        f"time={processing_time}ms"
    )

    return LocateResponse(
        result=result,
        thumbnail_base64=thumbnail_base64,
        processing_time_ms=processing_time,
    )
