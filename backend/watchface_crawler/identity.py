"""
Identity resolution for extracted records.

A record is identified by its numeric face id when one can be found in the
detail URL or in the image asset path. Otherwise a key is derived from the
record content, so the same item maps to the same key on every run.
"""

import hashlib
import re
from typing import Optional, Tuple

# https://site.com/face/12345, https://site.com/face/12345/neon-pulse
FACE_URL_RE = re.compile(r'/face/(\d+)')
# https://assets.site.com/watchfaces/ab12cd/12345/snapshot.png
FACE_IMAGE_RE = re.compile(r'watchfaces/[^/]+/(\d+)')

FACE_ID_PREFIX = "face_"
SYNTHETIC_ID_PREFIX = "watchface_"


def extract_face_id(url: Optional[str]) -> Optional[str]:
    """
    Extract the numeric face id from a detail URL.

    Examples:
        https://site.com/face/12345 -> "12345"
        https://site.com/latest -> None
    """
    if not url:
        return None
    match = FACE_URL_RE.search(url)
    return match.group(1) if match else None


def extract_image_face_id(image_url: Optional[str]) -> Optional[str]:
    """Extract the face id embedded in an asset path, if any."""
    if not image_url:
        return None
    match = FACE_IMAGE_RE.search(image_url)
    return match.group(1) if match else None


def canonical_detail_url(site_base_url: str, face_id: str) -> str:
    return f"{site_base_url.rstrip('/')}/face/{face_id}"


def synthetic_id(name: str, image_url: str) -> str:
    """Content-derived fallback key for records without a face id."""
    digest = hashlib.sha1(f"{name}\n{image_url}".encode('utf-8')).hexdigest()
    return f"{SYNTHETIC_ID_PREFIX}{digest[:16]}"


def resolve_identity(
    detail_url: Optional[str],
    image_url: Optional[str],
    site_base_url: str,
    name: str = "",
) -> Tuple[Optional[str], str, Optional[str]]:
    """
    Derive (face_id, original_id, detail_url) for a record.

    The detail URL wins over the image URL as a face id source. When a face
    id is found the detail URL is rewritten to its canonical form.
    """
    face_id = extract_face_id(detail_url) or extract_image_face_id(image_url)
    if face_id:
        return face_id, f"{FACE_ID_PREFIX}{face_id}", canonical_detail_url(site_base_url, face_id)
    return None, synthetic_id(name, image_url or ''), detail_url or None
