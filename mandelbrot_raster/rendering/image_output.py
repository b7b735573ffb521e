"""
Image export for Mandelbrot renders.

This module hands finished RGBA pixel buffers to Pillow for PNG encoding,
embeds render metadata as a PNG text chunk, and reports encoder failures
to the caller as EncodingError.
"""

import numpy as np
from typing import Any, BinaryIO, Dict, Optional, Union
from pathlib import Path
from dataclasses import dataclass, asdict, field
import json
import logging
from datetime import datetime

from PIL import Image, PngImagePlugin, UnidentifiedImageError

logger = logging.getLogger(__name__)

METADATA_KEY = "MandelbrotMetadata"

Sink = Union[str, Path, BinaryIO]


class EncodingError(RuntimeError):
    """Raised when a pixel buffer cannot be encoded or written."""


@dataclass
class RenderMetadata:
    """Metadata for Mandelbrot renders."""

    backend: str
    resolution: tuple  # width, height
    zoom: int
    sample_delta: float
    precision_bits: int

    include_center_sample: bool = False
    render_time_seconds: float = 0.0
    workers: int = 1

    timestamp: str = ""
    software_version: str = "1.0.0"
    extra: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Set default timestamp if not provided."""
        if not self.timestamp:
            self.timestamp = datetime.now().isoformat()
        self.resolution = tuple(self.resolution)

    def to_dict(self) -> Dict[str, Any]:
        """Convert metadata to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RenderMetadata':
        """Create metadata from dictionary."""
        return cls(**data)

    def to_json(self, indent: int = 2) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_json(cls, json_str: str) -> 'RenderMetadata':
        """Create metadata from JSON string."""
        return cls.from_dict(json.loads(json_str))


class ImageExporter:
    """PNG export of RGBA pixel buffers."""

    def __init__(self, compress_level: int = 6):
        """
        Initialize image exporter.

        Args:
            compress_level: zlib level, 0 (none) to 9 (max)
        """
        if not 0 <= compress_level <= 9:
            raise ValueError(f"compress_level must be between 0 and 9, got {compress_level}")
        self.compress_level = compress_level

    def encode(self, pixels: np.ndarray, sink: Sink,
               metadata: Optional[RenderMetadata] = None) -> None:
        """
        Encode an RGBA buffer as PNG into a path or writable binary stream.

        Args:
            pixels: uint8 array of shape (height, width, 4)
            sink: Output file path or binary stream
            metadata: Render metadata to embed

        Raises:
            ValueError: If the buffer has the wrong shape or type
            EncodingError: If Pillow or the sink fails
        """
        pixels = self._prepare_image_array(pixels)
        pil_image = Image.fromarray(pixels)

        pnginfo = PngImagePlugin.PngInfo()
        if metadata:
            pnginfo.add_text("Title", f"Mandelbrot set ({metadata.backend} precision)")
            pnginfo.add_text("Software", f"mandelbrot-raster v{metadata.software_version}")
            pnginfo.add_text("Creation Time", metadata.timestamp)
            pnginfo.add_text(METADATA_KEY, metadata.to_json())

        if isinstance(sink, (str, Path)):
            sink = Path(sink)

        try:
            pil_image.save(sink, "PNG", pnginfo=pnginfo, compress_level=self.compress_level)
        except (OSError, ValueError) as e:
            raise EncodingError(f"Could not encode PNG: {e}") from e

        logger.info(f"Encoded PNG {pil_image.size[0]}x{pil_image.size[1]}"
                    + (f" to {sink}" if isinstance(sink, Path) else ""))

    def _prepare_image_array(self, pixels: np.ndarray) -> np.ndarray:
        """Validate the pixel buffer handed to the encoder."""
        pixels = np.asarray(pixels)
        if pixels.ndim != 3 or pixels.shape[2] != 4:
            raise ValueError(f"Expected RGBA image array (H, W, 4), got {pixels.shape}")
        if pixels.dtype != np.uint8:
            raise ValueError(f"Expected uint8 pixels, got {pixels.dtype}")
        return np.ascontiguousarray(pixels)

    def extract_metadata(self, source: Sink) -> Optional[RenderMetadata]:
        """
        Extract render metadata from an encoded PNG.

        Args:
            source: Path or binary stream of a PNG

        Returns:
            Extracted metadata, or None when the image carries none
        """
        try:
            with Image.open(source) as img:
                text = getattr(img, 'text', {})
                if METADATA_KEY in text:
                    return RenderMetadata.from_json(text[METADATA_KEY])
        except (OSError, UnidentifiedImageError) as e:
            raise EncodingError(f"Could not read image: {e}") from e

        return None

    def decode(self, source: Sink) -> np.ndarray:
        """Decode a PNG back into an RGBA uint8 array."""
        try:
            with Image.open(source) as img:
                return np.array(img.convert('RGBA'))
        except (OSError, UnidentifiedImageError) as e:
            raise EncodingError(f"Could not read image: {e}") from e
