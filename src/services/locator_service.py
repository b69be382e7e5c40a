"""
Locator Service - Business logic for locating parts by template.

This service sits between an image source (a vision pipeline, the API) and
the template locator. It resolves the template by name, reads the expected
orientation, applies the optional wall-clock budget and renders overlays.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol, Tuple

import numpy as np

from algorithms.template_locator import locate
from api.exceptions import OperationTimeoutException
from domain_types import SystemConstants
from image.converters import create_thumbnail
from image.overlay import render_match_result
from models import LocateParams, MatchResult
from utils import timer

logger = logging.getLogger(__name__)


# ==============================================================================
# Collaborator Interfaces
# ==============================================================================


@dataclass
class NamedResult:
    """Image stored by an upstream processing step."""

    image: np.ndarray
    geometry: Optional[Any] = None


class ImageSource(Protocol):
    """Supplies the working image and named upstream results."""

    def current_working_image(self) -> np.ndarray: ...

    def named_result(self, name: str) -> Optional[NamedResult]: ...


class OrientationSource(Protocol):
    """Supplies the expected rotation of the part, e.g. a nozzle's current pose."""

    def current_rotation(self) -> float: ...


@dataclass
class InMemoryImageSource:
    """Image source backed by an array and a dict of named results."""

    working_image: np.ndarray
    results: Dict[str, NamedResult] = field(default_factory=dict)

    def current_working_image(self) -> np.ndarray:
        return self.working_image

    def named_result(self, name: str) -> Optional[NamedResult]:
        return self.results.get(name)

    def add_result(self, name: str, image: np.ndarray, geometry: Optional[Any] = None) -> None:
        self.results[name] = NamedResult(image=image, geometry=geometry)


@dataclass
class FixedOrientation:
    """Orientation source returning a constant angle."""

    angle: float = 0.0

    def current_rotation(self) -> float:
        return self.angle


# ==============================================================================
# Service
# ==============================================================================


class LocatorService:
    """
    Service for rotation-invariant part location.

    The service holds no per-call state; concurrent calls only share the
    worker pool used to enforce timeouts.
    """

    def __init__(
        self,
        default_params: Optional[LocateParams] = None,
        max_workers: int = SystemConstants.THREAD_POOL_SIZE,
        thumbnail_width: int = SystemConstants.THUMBNAIL_WIDTH,
    ):
        """
        Initialize locator service.

        Args:
            default_params: Parameters used when a call does not pass any
            max_workers: Worker threads for calls with a timeout
            thumbnail_width: Width of overlay thumbnails
        """
        self.default_params = default_params or LocateParams()
        self.thumbnail_width = thumbnail_width
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="locator"
        )

    def locate_part(
        self,
        image_source: ImageSource,
        params: Optional[LocateParams] = None,
        orientation_source: Optional[OrientationSource] = None,
        timeout_s: Optional[float] = None,
        raise_on_timeout: bool = False,
    ) -> MatchResult:
        """
        Locate the configured template in the source's working image.

        Args:
            image_source: Provides the working image and the template result
            params: Locator parameters (service defaults if None)
            orientation_source: Provides the expected angle (0 if None)
            timeout_s: Optional wall-clock budget in seconds
            raise_on_timeout: Raise instead of returning a no-match result
                when the budget is exceeded

        Returns:
            MatchResult; a missing template yields a no-match result

        Raises:
            OperationTimeoutException: If the budget is exceeded and
                raise_on_timeout is set
        """
        params = params or self.default_params

        if not params.template_source_name:
            logger.debug("No template source configured")
            return MatchResult.not_found()

        template = image_source.named_result(params.template_source_name)
        if template is None or template.image is None:
            logger.debug(f"Template result '{params.template_source_name}' not available")
            return MatchResult.not_found()

        working_image = image_source.current_working_image()
        orientation_hint = (
            orientation_source.current_rotation() if orientation_source is not None else None
        )

        if timeout_s is None:
            return locate(working_image, template.image, params, orientation_hint)

        future = self._executor.submit(
            locate, working_image, template.image, params, orientation_hint
        )
        try:
            return future.result(timeout=timeout_s)
        except FuturesTimeoutError:
            future.cancel()
            logger.error(
                f"Template location timed out after {timeout_s:g}s "
                f"(template '{params.template_source_name}')"
            )
            if raise_on_timeout:
                raise OperationTimeoutException("template location", timeout_s)
            return MatchResult.not_found(error=f"timeout after {timeout_s:g}s")

    def locate_with_overlay(
        self,
        image_source: ImageSource,
        params: Optional[LocateParams] = None,
        orientation_source: Optional[OrientationSource] = None,
        timeout_s: Optional[float] = None,
        raise_on_timeout: bool = False,
    ) -> Tuple[MatchResult, str, int]:
        """
        Locate the template and render the result.

        Returns:
            Tuple of (result, thumbnail_base64, processing_time_ms)
        """
        with timer() as t:
            result = self.locate_part(
                image_source, params, orientation_source, timeout_s, raise_on_timeout
            )
            overlay = render_match_result(image_source.current_working_image(), result)
            _, thumbnail_base64 = create_thumbnail(
                overlay, self.thumbnail_width, SystemConstants.THUMBNAIL_JPEG_QUALITY
            )

        return result, thumbnail_base64, t["ms"]

    def shutdown(self) -> None:
        """Release worker threads."""
        self._executor.shutdown(wait=False)
