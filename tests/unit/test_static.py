"""
Unit tests for static resource resolution.
"""

import os
from pathlib import Path

import pytest

from statichttpd.handlers.static import (
    Decision,
    Resource,
    ResourceNotFound,
    ResourceUnreadable,
    StaticSite,
    decide,
)


class TestDecide:
    """The pure decision table."""

    @pytest.mark.parametrize("exists,is_dir,index_exists,expected", [
        (False, False, False, Decision.NOT_FOUND),
        (False, True, True, Decision.NOT_FOUND),
        (True, True, False, Decision.NOT_FOUND),
        (True, True, True, Decision.SERVE_INDEX),
        (True, False, False, Decision.SERVE_FILE),
        (True, False, True, Decision.SERVE_FILE),
    ])
    def test_table(self, exists, is_dir, index_exists, expected):
        assert decide(exists, is_dir, index_exists) is expected


class TestLocate:
    def test_directory_serves_index(self, docroot: Path):
        site = StaticSite(str(docroot))
        resource = site.locate(str(docroot))

        assert resource == Resource(path=str(docroot / "index.html"), content_type="text/html")

    def test_file(self, docroot: Path):
        site = StaticSite(str(docroot))
        resource = site.locate(str(docroot / "images" / "cat.jpg"))

        assert resource.content_type == "image/jpeg"
        assert resource.path == str(docroot / "images" / "cat.jpg")

    def test_directory_without_index(self, docroot: Path):
        with pytest.raises(ResourceNotFound):
            StaticSite(str(docroot)).locate(str(docroot / "docs"))

    def test_missing(self, docroot: Path):
        with pytest.raises(ResourceNotFound):
            StaticSite(str(docroot)).locate(str(docroot / "nope.txt"))

    def test_path_through_a_file(self, docroot: Path):
        """index.html/x: a file used as a directory is simply missing."""
        with pytest.raises(ResourceNotFound):
            StaticSite(str(docroot)).locate(str(docroot / "index.html" / "x"))

    def test_unknown_extension(self, docroot: Path):
        resource = StaticSite(str(docroot)).locate(str(docroot / "README"))
        assert resource.content_type == "application/octet-stream"

    def test_custom_index_file(self, docroot: Path):
        (docroot / "docs" / "home.htm").write_bytes(b"home")
        site = StaticSite(str(docroot), index_file="home.htm")

        assert site.locate(str(docroot / "docs")).path == str(docroot / "docs" / "home.htm")

    def test_index_that_is_a_directory(self, docroot: Path):
        (docroot / "docs" / "index.html").mkdir()

        with pytest.raises(ResourceNotFound):
            StaticSite(str(docroot)).locate(str(docroot / "docs"))

    @pytest.mark.skipif(not hasattr(os, "mkfifo"), reason="needs os.mkfifo")
    def test_fifo_counts_as_missing(self, docroot: Path):
        os.mkfifo(docroot / "pipe.txt")

        with pytest.raises(ResourceNotFound):
            StaticSite(str(docroot)).locate(str(docroot / "pipe.txt"))

    def test_no_caching(self, docroot: Path):
        """A file created after the first lookup is found on the next."""
        site = StaticSite(str(docroot))
        target = str(docroot / "late.txt")

        with pytest.raises(ResourceNotFound):
            site.locate(target)

        (docroot / "late.txt").write_bytes(b"here now")
        assert site.locate(target).content_type == "text/plain"


class TestLoad:
    def test_reads_bytes(self, docroot: Path, cat_jpg: bytes):
        site = StaticSite(str(docroot))
        resource = site.locate(str(docroot / "images" / "cat.jpg"))

        assert site.load(resource) == cat_jpg

    def test_vanished_file(self, docroot: Path):
        site = StaticSite(str(docroot))

        with pytest.raises(ResourceUnreadable):
            site.load(Resource(path=str(docroot / "gone.txt"), content_type="text/plain"))

    @pytest.mark.skipif(
        not hasattr(os, "geteuid") or os.geteuid() == 0,
        reason="root can read any file",
    )
    def test_permission_denied(self, docroot: Path):
        secret = docroot / "secret.txt"
        secret.write_bytes(b"x")
        secret.chmod(0)
        try:
            site = StaticSite(str(docroot))
            with pytest.raises(ResourceUnreadable):
                site.load(site.locate(str(secret)))
        finally:
            secret.chmod(0o644)


class TestNotFoundPage:
    def test_absent(self, docroot: Path):
        assert StaticSite(str(docroot)).not_found_page() is None

    def test_present(self, docroot: Path):
        (docroot / "not-found.html").write_bytes(b"<h1>gone</h1>")

        page = StaticSite(str(docroot)).not_found_page()
        assert page == Resource(path=str(docroot / "not-found.html"), content_type="text/html")

    def test_directory_is_not_a_page(self, docroot: Path):
        (docroot / "not-found.html").mkdir()
        assert StaticSite(str(docroot)).not_found_page() is None
