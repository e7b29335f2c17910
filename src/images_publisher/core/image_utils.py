"""Image decoding, rendering and encoding utilities for the images publisher."""

import io
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Tuple

from PIL import Image, ImageColor, ImageOps, UnidentifiedImageError

from .exceptions import DecodeError, EncodeError
from .geometry import Geometry, round_half_up
from .models import OutputFormat, OutputSettings

# Fixed resampling filter so that identical inputs give identical pixels
RESAMPLE = Image.Resampling.BILINEAR

FORMAT_INFO: Dict[OutputFormat, Tuple[str, str, str]] = {
    OutputFormat.WEBP: ("WEBP", ".webp", "image/webp"),
    OutputFormat.JPG: ("JPEG", ".jpg", "image/jpeg"),
    OutputFormat.PNG: ("PNG", ".png", "image/png"),
}


@dataclass(frozen=True)
class ImageSource:
    """A decoded source image."""

    file_name: str
    content: bytes = field(repr=False)
    image: Image.Image = field(repr=False, compare=False)
    width: int
    height: int


def decode_image(content: bytes, file_name: str = "image") -> ImageSource:
    """
    Decode raw bytes into an ImageSource.

    Args:
        content: Raw file bytes
        file_name: Name used for the output file and in error messages

    Returns:
        ImageSource with the decoded, upright image and its natural size

    Raises:
        DecodeError: If the bytes are not a decodable raster image
    """
    if not content:
        raise DecodeError(f"Empty image data for {file_name}")
    try:
        image = Image.open(io.BytesIO(content))
        image.load()
        # Natural size is the displayed one, after EXIF rotation
        image = ImageOps.exif_transpose(image)
    except (
        UnidentifiedImageError,
        Image.DecompressionBombError,
        OSError,
        SyntaxError,
        ValueError,
    ) as exc:
        raise DecodeError(f"Failed to decode {file_name}: {exc}") from exc

    width, height = image.size
    if width <= 0 or height <= 0:
        raise DecodeError(f"Image {file_name} has no pixels")
    return ImageSource(
        file_name=file_name,
        content=content,
        image=image,
        width=width,
        height=height,
    )


def render_image(source: ImageSource, geometry: Geometry) -> Image.Image:
    """
    Paint the source onto a new canvas as described by ``geometry``.

    The canvas starts transparent, is optionally filled with the background
    colour, and receives the source rectangle resampled to the destination
    rectangle.
    """
    canvas = Image.new("RGBA", geometry.canvas_size, (0, 0, 0, 0))
    if geometry.fill_background:
        canvas.paste(
            ImageColor.getcolor(geometry.background, "RGBA"),
            (0, 0, *geometry.canvas_size),
        )

    dest = geometry.dest
    dest_size = (max(1, round_half_up(dest.width)), max(1, round_half_up(dest.height)))
    region = source.image.convert("RGBA").resize(
        dest_size, RESAMPLE, box=geometry.source.box
    )
    canvas.alpha_composite(region, dest=(round_half_up(dest.x), round_half_up(dest.y)))
    return canvas


def encode_image(image: Image.Image, settings: OutputSettings) -> bytes:
    """
    Encode ``image`` in the requested format.

    Raises:
        EncodeError: If the encoder fails or produces no output
    """
    pil_format = FORMAT_INFO[settings.format][0]
    params: Dict[str, Any] = {}

    if settings.format == OutputFormat.JPG:
        # JPEG has no alpha channel; flatten onto white
        flattened = Image.new("RGB", image.size, (255, 255, 255))
        flattened.paste(image, mask=image.getchannel("A") if image.mode == "RGBA" else None)
        image = flattened
        params["quality"] = settings.quality
    elif settings.format == OutputFormat.WEBP:
        params["quality"] = settings.quality

    output_stream = io.BytesIO()
    try:
        image.save(output_stream, format=pil_format, **params)
    except (OSError, ValueError, KeyError) as exc:
        raise EncodeError(f"Encoding to {settings.format.value} failed: {exc}") from exc

    data = output_stream.getvalue()
    if not data:
        raise EncodeError(f"Encoding to {settings.format.value} produced no output")
    return data


def output_file_name(file_name: str, output_format: OutputFormat) -> str:
    """Replace the extension of ``file_name`` with the format's extension."""
    base_name, _ = os.path.splitext(os.path.basename(file_name))
    return base_name + FORMAT_INFO[output_format][1]


def mime_type(output_format: OutputFormat) -> str:
    return FORMAT_INFO[output_format][2]


def calculate_remote_path(file_name: str, folder: str) -> str:
    """
    Calculate the repository path for an uploaded file.

    Args:
        file_name: Output file name
        folder: Remote folder (may be empty, may carry leading/trailing slashes)

    Returns:
        Slash-separated repository path without a leading slash
    """
    folder = (folder or "").strip().strip("/")
    name = file_name.lstrip("/")
    if folder:
        return f"{folder}/{name}"
    return name
