"""
Tests for identity resolution.
"""

from watchface_crawler.identity import (
    extract_face_id,
    extract_image_face_id,
    resolve_identity,
    synthetic_id,
)

from helpers import SITE


class TestFaceId:
    """Test face id parsing from URLs."""

    def test_face_id_from_detail_url(self):
        assert extract_face_id(f"{SITE}/face/12345") == "12345"

    def test_face_id_with_trailing_slug(self):
        assert extract_face_id(f"{SITE}/face/987/neon-pulse") == "987"

    def test_no_face_segment(self):
        assert extract_face_id(f"{SITE}/latest") is None
        assert extract_face_id(f"{SITE}/face/abc") is None
        assert extract_face_id("") is None
        assert extract_face_id(None) is None

    def test_face_id_from_image_path(self):
        url = "https://assets.watchfacely.com/watchfaces/u7x2/4411/snapshot.png"
        assert extract_image_face_id(url) == "4411"
        assert extract_image_face_id("https://cdn.example.com/thumb.png") is None


class TestResolveIdentity:
    """Test original id and canonical URL derivation."""

    def test_detail_url_is_canonicalized(self):
        face_id, original_id, url = resolve_identity(
            f"{SITE}/face/12345/neon?ref=latest", f"{SITE}/img/a.png", SITE, "Neon"
        )
        assert face_id == "12345"
        assert original_id == "face_12345"
        assert url == f"{SITE}/face/12345"

    def test_face_id_falls_back_to_image(self):
        image = "https://assets.watchfacely.com/watchfaces/u7x2/4411/snapshot.png"
        face_id, original_id, url = resolve_identity("", image, SITE + "/", "Neon")
        assert face_id == "4411"
        assert original_id == "face_4411"
        assert url == f"{SITE}/face/4411"

    def test_synthetic_id_is_stable(self):
        first = resolve_identity(f"{SITE}/about", f"{SITE}/img/a.png", SITE, "Neon")
        second = resolve_identity(f"{SITE}/about", f"{SITE}/img/a.png", SITE, "Neon")
        assert first == second
        assert first[0] is None
        assert first[1].startswith("watchface_")
        assert first[2] == f"{SITE}/about"

    def test_synthetic_id_depends_on_content(self):
        assert synthetic_id("Neon", "a.png") != synthetic_id("Neon", "b.png")
        assert synthetic_id("Neon", "a.png") != synthetic_id("Pulse", "a.png")
