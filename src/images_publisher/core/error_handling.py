# src/images_publisher/core/error_handling.py

import functools
import logging

import httpx
from PIL import UnidentifiedImageError as PILUnidentifiedImageError

from .exceptions import (
    BatchError,
    DecodeError,
    ImagesPublisherError,
    TransportError,
)


def with_error_handling(func):
    """
    A decorator to wrap functions with standardized error handling.

    Package errors are logged and re-raised unchanged. Stray httpx transport
    errors and Pillow identification errors are mapped into the package
    taxonomy; anything else propagates as is.
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger = logging.getLogger(func.__module__ + '.' + func.__name__)
        try:
            return func(*args, **kwargs)
        except ImagesPublisherError as e:
            logger.error(f"Error in '{func.__name__}': {e}")
            raise
        except Exception as e:
            logger.error(
                f"Error in '{func.__name__}': {e}",
                exc_info=True
            )
            if isinstance(e, httpx.TransportError):
                raise TransportError(f"Network error in {func.__name__}: {e}") from e
            if isinstance(e, PILUnidentifiedImageError):
                raise DecodeError(f"Failed to identify image in {func.__name__}: {e}") from e
            raise
    return wrapper


class BatchStageContext:
    """
    Context manager for one stage of a publish batch.

    Logs the start and the outcome of the stage. Any exception raised inside
    the block is wrapped in a ``BatchError`` tagged with the stage, so the
    orchestrator can report where the batch stopped.
    """
    def __init__(self, stage, logger=None):
        self.stage = stage
        self.logger = logger or logging.getLogger(
            self.__class__.__module__ + '.' + self.__class__.__name__
        )

    @property
    def stage_name(self):
        return getattr(self.stage, "value", str(self.stage))

    def __enter__(self):
        self.logger.debug(f"Starting stage {self.stage_name}.")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self.logger.debug(f"Stage {self.stage_name} completed successfully.")
            return False
        if isinstance(exc_val, BatchError):
            return False
        if not isinstance(exc_val, Exception):
            # KeyboardInterrupt and friends propagate untouched
            return False
        self.logger.error(f"Stage {self.stage_name} failed: {exc_val}")
        raise BatchError(self.stage, exc_val) from exc_val
