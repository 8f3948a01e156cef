import asyncio
import base64
import binascii
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional
from urllib.parse import unquote_to_bytes, urlsplit
from urllib.request import url2pathname
import aiohttp
from ..errors import LoadError


logger = logging.getLogger(__name__)

HTTP_TIMEOUT = aiohttp.ClientTimeout(total=None)


@dataclass
class Response:
    url: str
    body: bytes
    headers: Dict[str, str] = field(default_factory=dict)
    content_type: Optional[str] = None


def decode_data_url(url: str) -> Response:
    """
    Decodes a "data:[<mediatype>][;base64],<data>" URL.
    """
    try:
        header, payload = url[len("data:"):].split(",", 1)
    except ValueError:
        raise LoadError(f"Malformed data URL: {url[:40]}")

    params = header.split(";")
    is_base64 = params[-1].strip().lower() == "base64"
    if is_base64:
        params = params[:-1]
    content_type = params[0].strip() or "text/plain"

    if is_base64:
        try:
            body = base64.b64decode(unquote_to_bytes(payload), validate=False)
        except binascii.Error as e:
            raise LoadError(f"Invalid base64 payload in data URL: {e}") from e
    else:
        body = unquote_to_bytes(payload)
    return Response(url, body, content_type=content_type)


async def _read_file(url: str) -> Response:
    parts = urlsplit(url)
    if parts.scheme == "file":
        path = Path(url2pathname(parts.path))
    else:
        path = Path(url)
    try:
        body = await asyncio.to_thread(path.read_bytes)
    except OSError as e:
        raise LoadError(f"Cannot read {path}: {e}") from e
    return Response(url, body)


async def _http_get(url: str, user_agent: Optional[str]) -> Response:
    headers = {"User-Agent": user_agent} if user_agent else {}
    try:
        async with aiohttp.ClientSession(
            headers=headers, timeout=HTTP_TIMEOUT
        ) as session:
            async with session.get(url) as response:
                response.raise_for_status()
                body = await response.read()
                return Response(
                    str(response.url),
                    body,
                    headers={
                        k.lower(): v for k, v in response.headers.items()
                    },
                    content_type=response.content_type,
                )
    except aiohttp.ClientError as e:
        raise LoadError(f"GET {url} failed: {e}") from e


async def fetch(url: str, user_agent: Optional[str] = None) -> Response:
    """
    Fetches the resource behind an absolute URL or a local path.

    Raises:
        LoadError: if the resource cannot be retrieved.
    """
    scheme = urlsplit(url).scheme.lower()
    logger.debug(f"Fetching {url[:80]}")
    if scheme == "data":
        return decode_data_url(url)
    if scheme in ("http", "https"):
        return await _http_get(url, user_agent)
    if scheme == "file" or len(scheme) <= 1:
        # A one-letter scheme is a Windows drive.
        return await _read_file(url)
    raise LoadError(f"Unsupported URL scheme: {scheme}")
