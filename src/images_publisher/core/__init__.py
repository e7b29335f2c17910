"""Core utilities and shared components for the images publisher."""

from .geometry import Geometry, Rect, resolve_geometry, would_upscale
from .image_utils import (
    ImageSource,
    calculate_remote_path,
    decode_image,
    encode_image,
    output_file_name,
    render_image,
)
from .logging_config import get_logger, setup_logger
from .exceptions import (
    BatchError,
    ConflictError,
    DecodeError,
    EncodeError,
    ImageProcessingError,
    ImagesPublisherError,
    NotFoundError,
    RemoteError,
    TransportError,
    ValidationError,
    WriteError,
)
from .models import (
    Anchor,
    BatchResult,
    BatchStage,
    BranchState,
    CropOptions,
    DeleteItem,
    EncodedImage,
    FitOptions,
    FolderEntry,
    OutputFormat,
    OutputSettings,
    PadOptions,
    PublishConfig,
    PublishRequest,
    RepoContext,
    ResizeMode,
    SideOption,
    SideOptions,
    StretchOptions,
    TargetBox,
    TreeChange,
    UploadItem,
)

__all__ = [
    "Anchor",
    "BatchError",
    "BatchResult",
    "BatchStage",
    "BranchState",
    "ConflictError",
    "CropOptions",
    "DecodeError",
    "DeleteItem",
    "EncodeError",
    "EncodedImage",
    "FitOptions",
    "FolderEntry",
    "Geometry",
    "ImageProcessingError",
    "ImageSource",
    "ImagesPublisherError",
    "NotFoundError",
    "OutputFormat",
    "OutputSettings",
    "PadOptions",
    "PublishConfig",
    "PublishRequest",
    "Rect",
    "RemoteError",
    "RepoContext",
    "ResizeMode",
    "SideOption",
    "SideOptions",
    "StretchOptions",
    "TargetBox",
    "TransportError",
    "TreeChange",
    "UploadItem",
    "ValidationError",
    "WriteError",
    "calculate_remote_path",
    "decode_image",
    "encode_image",
    "get_logger",
    "output_file_name",
    "render_image",
    "resolve_geometry",
    "setup_logger",
    "would_upscale",
]
