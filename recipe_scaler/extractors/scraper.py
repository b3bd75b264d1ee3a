"""
Fetch a recipe page (or a bare JSON-LD document) and return its Recipe node.

Sites behind anti-bot protection are fetched through a cloudscraper session.
Downloads are capped at DEFAULT_MAX_RESPONSE_SIZE.
"""
from __future__ import annotations

import ipaddress
import json
import logging
import time
from urllib.parse import urlparse

import cloudscraper
import requests

from ..const import DEFAULT_MAX_REDIRECTS, DEFAULT_MAX_RESPONSE_SIZE, DEFAULT_TIMEOUT
from ..parsers.jsonld_parser import (
    JsonLdImportError,
    find_recipe_in_html,
    find_recipe_in_json_ld,
)

_LOGGER = logging.getLogger(__name__)

HTML_CONTENT_TYPES = ("text/html", "application/xhtml", "application/xml")
JSON_CONTENT_TYPES = ("application/ld+json", "application/json")

# Statuses worth another try; recipe sites answer bots with these
RETRY_STATUSES = frozenset({403, 429, 503})
MAX_ATTEMPTS = 3
CHUNK_SIZE = 8192


def validate_url(url: str) -> None:
    """Only plain http(s) URLs to public hosts may be fetched.

    Raises:
        ValueError: If the URL is not allowed
    """
    if not url or not url.strip():
        raise ValueError("Recipe URL is empty")

    parsed = urlparse(url.strip())
    if parsed.scheme not in ("http", "https"):
        raise ValueError(f"Unsupported scheme '{parsed.scheme}', only HTTP/HTTPS recipe URLs are allowed")
    if not parsed.hostname:
        raise ValueError("Recipe URL has no host")

    try:
        address = ipaddress.ip_address(parsed.hostname)
    except ValueError:
        return

    if address.is_private or address.is_loopback or address.is_link_local:
        raise ValueError(f"Refusing to fetch from internal address {address}")


def _backoff(attempt: int) -> int:
    return 2 ** attempt


def _check_headers(response: requests.Response) -> str:
    """Return the content type, rejecting unsupported or oversized responses."""
    content_type = response.headers.get("content-type", "").lower()
    if not any(kind in content_type for kind in HTML_CONTENT_TYPES + JSON_CONTENT_TYPES):
        raise ValueError(
            f"Invalid content type: {content_type or 'missing'}. "
            "Expected an HTML page or a JSON-LD document.")

    declared = response.headers.get("content-length")
    if declared and int(declared) > DEFAULT_MAX_RESPONSE_SIZE:
        raise ValueError(
            f"Declared size {declared} bytes exceeds maximum of {DEFAULT_MAX_RESPONSE_SIZE} bytes")
    return content_type


def _read_limited(response: requests.Response) -> bytes:
    body = bytearray()
    for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
        body.extend(chunk)
        if len(body) > DEFAULT_MAX_RESPONSE_SIZE:
            raise ValueError(
                f"Download exceeds maximum of {DEFAULT_MAX_RESPONSE_SIZE} bytes")
    return bytes(body)


def fetch_page(session: requests.Session, url: str,
               max_attempts: int = MAX_ATTEMPTS) -> tuple[bytes, str]:
    """Download a recipe page, retrying throttled and failed requests.

    Args:
        session: Session to fetch with
        url: Page to download
        max_attempts: Attempts before giving up

    Returns:
        The body and its content type

    Raises:
        requests.exceptions.RequestException: If the last attempt fails
        ValueError: If the response is not a page we can read
    """
    for attempt in range(max_attempts):
        last_attempt = attempt == max_attempts - 1
        try:
            response = session.get(url, timeout=DEFAULT_TIMEOUT,
                                   allow_redirects=True, stream=True)
            try:
                response.raise_for_status()
                content_type = _check_headers(response)
                return _read_limited(response), content_type
            finally:
                response.close()
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            if status not in RETRY_STATUSES or last_attempt:
                raise
            _LOGGER.warning("%s answered %s, waiting %ds before attempt %d",
                            url, status, _backoff(attempt), attempt + 2)
            time.sleep(_backoff(attempt))
        except requests.exceptions.RequestException as e:
            if last_attempt:
                raise
            _LOGGER.warning("Request to %s failed (%s), waiting %ds before attempt %d",
                            url, e, _backoff(attempt), attempt + 2)
            time.sleep(_backoff(attempt))

    raise requests.exceptions.RequestException(f"No attempts made for {url}")


def create_session() -> requests.Session:
    session = cloudscraper.create_scraper(
        browser={"browser": "chrome", "platform": "windows", "desktop": True})
    session.max_redirects = DEFAULT_MAX_REDIRECTS
    return session


def _recipe_from_json(body: bytes) -> dict | None:
    try:
        data = json.loads(body.decode("utf-8-sig"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise JsonLdImportError(f"Document is not valid JSON: {e}") from e
    return find_recipe_in_json_ld(data)


def fetch_recipe_json_ld(url: str, session: requests.Session | None = None) -> str:
    """Fetch a recipe URL and return its Recipe JSON-LD as text.

    The URL may be an ordinary recipe page with embedded JSON-LD scripts or
    a JSON-LD document served on its own.

    Raises:
        requests.exceptions.RequestException: If fetching fails
        ValueError: If the URL or the response is not allowed
        JsonLdImportError: If no Recipe node is found
    """
    validate_url(url)
    _LOGGER.info("Fetching recipe from %s", url)

    body, content_type = fetch_page(session or create_session(), url)
    _LOGGER.debug("Received %d bytes (%s) from %s", len(body), content_type, url)

    if any(kind in content_type for kind in JSON_CONTENT_TYPES):
        recipe = _recipe_from_json(body)
    else:
        recipe = find_recipe_in_html(body)
    if recipe is None:
        raise JsonLdImportError(f"No Recipe JSON-LD found at {url}")

    return json.dumps(recipe, ensure_ascii=False)
