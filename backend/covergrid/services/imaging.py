"""
CoverGrid Imaging Utilities
Loads album-cover sources, decodes them and exposes raw pixel samples.
"""
import base64
import binascii
import io
from pathlib import Path
from typing import Optional
from urllib.parse import unquote

import httpx
import numpy as np
from loguru import logger
from PIL import Image

from covergrid.config import config
from covergrid.services.reliability import DecodeFailure


def _check_size(source: str, data: bytes) -> bytes:
    if len(data) > config.MAX_FILE_MB * 1024 * 1024:
        raise DecodeFailure(source, f"file larger than {config.MAX_FILE_MB}MB")
    if not data:
        raise DecodeFailure(source, "empty response")
    return data


def decode_data_url(source: str) -> bytes:
    """Decode a ``data:[<mime>][;base64],<payload>`` URL to raw bytes."""
    header, sep, payload = source.partition(',')
    if not sep:
        raise DecodeFailure(source[:64], "malformed data URL")
    try:
        if header.endswith(';base64'):
            return base64.b64decode(payload, validate=True)
        return unquote(payload).encode('latin-1')
    except (binascii.Error, ValueError) as e:
        raise DecodeFailure(source[:64], f"invalid data URL payload: {e}") from e


async def fetch_url(source: str, client: httpx.AsyncClient) -> bytes:
    """
    Download an image over HTTP(S).

    Raises:
        DecodeFailure: On transport errors or non-2xx responses
    """
    try:
        response = await client.get(source, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPError as e:
        raise DecodeFailure(source, f"fetch failed: {e}") from e
    return response.content


async def load_source(source: str,
                      client: Optional[httpx.AsyncClient] = None,
                      allow_local: Optional[bool] = None) -> bytes:
    """
    Read the raw bytes behind an image locator.

    Supports ``http(s)://`` URLs and ``data:`` URLs. Local paths (optionally
    prefixed with ``file://``) are read only when local sources are allowed.

    Args:
        source: Image locator
        client: Shared HTTP client; a short-lived one is created if omitted
        allow_local: Permit filesystem sources (config default: off)

    Returns:
        Encoded image bytes

    Raises:
        DecodeFailure: If the source cannot be read
    """
    if source.startswith(("http://", "https://")):
        if client is None:
            async with httpx.AsyncClient(timeout=config.FETCH_TIMEOUT_S) as own_client:
                data = await fetch_url(source, own_client)
        else:
            data = await fetch_url(source, client)
    elif source.startswith("data:"):
        data = decode_data_url(source)
    else:
        allow_local = config.ALLOW_LOCAL_SOURCES if allow_local is None else allow_local
        if not allow_local:
            raise DecodeFailure(source, "only http(s) and data: sources are accepted")
        path = Path(source[len("file://"):] if source.startswith("file://") else source)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise DecodeFailure(source, f"cannot read file: {e}") from e

    return _check_size(source, data)


def decode_image(data: bytes, source: str = "<bytes>") -> Image.Image:
    """
    Decode image bytes into an RGBA PIL image.

    Raises:
        DecodeFailure: If the bytes are not a decodable image
    """
    try:
        with Image.open(io.BytesIO(data)) as pil_image:
            pil_image.load()
            image = pil_image.convert('RGBA')
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        raise DecodeFailure(source, f"failed to decode image: {e}") from e

    logger.debug(f"Decoded {source[:80]} as {image.width}x{image.height}")
    return image


def sample_pixels(image: Image.Image) -> np.ndarray:
    """
    Raw pixel samples of an image.

    Returns:
        (width*height, 4) uint8 RGBA array in row-major order; empty for a
        zero-sized image
    """
    if image.width == 0 or image.height == 0:
        return np.empty((0, 4), dtype=np.uint8)
    if image.mode != 'RGBA':
        image = image.convert('RGBA')
    return np.asarray(image, dtype=np.uint8).reshape(-1, 4)


def rgb_samples(samples: np.ndarray) -> np.ndarray:
    """Drop the alpha channel from RGBA samples."""
    return samples[:, :3]
