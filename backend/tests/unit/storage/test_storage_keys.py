"""Unit tests for storage key generation and normalisation"""

import re
from datetime import datetime, timezone

import pytest

from paperflow.infrastructure.storage.storage_keys import (
    generate_storage_key,
    normalize_storage_key,
    sanitize_filename,
)


class TestSanitizeFilename:

    def test_strips_directories(self):
        assert sanitize_filename("../../exam.pdf") == "exam.pdf"
        assert sanitize_filename("C:\\Users\\lena\\exam.pdf") == "exam.pdf"

    def test_replaces_unsafe_characters(self):
        assert sanitize_filename("final exam (v2).pdf") == "final_exam_v2_.pdf"

    def test_hidden_and_empty_names(self):
        assert sanitize_filename(".pdf") == "pdf"
        assert sanitize_filename("") == "paper.pdf"
        assert sanitize_filename(None) == "paper.pdf"

    def test_long_names_keep_extension(self):
        name = sanitize_filename("x" * 300 + ".pdf")
        assert len(name) == 200
        assert name.endswith(".pdf")


class TestGenerateStorageKey:

    def test_format(self):
        now = datetime(2026, 3, 7, tzinfo=timezone.utc)
        key = generate_storage_key("exam.pdf", now=now)
        assert re.fullmatch(r"2026/03/[0-9a-f]{32}-exam\.pdf", key)

    def test_keys_are_unique(self):
        assert generate_storage_key("exam.pdf") != generate_storage_key("exam.pdf")

    def test_key_is_relative(self):
        key = generate_storage_key("/etc/passwd")
        assert not key.startswith("/")
        assert ".." not in key.split("/")


class TestNormalizeStorageKey:

    def test_plain_key_unchanged(self):
        assert normalize_storage_key("2026/03/abc-exam.pdf") == "2026/03/abc-exam.pdf"

    def test_backslashes_converted(self):
        assert normalize_storage_key("2026\\03\\abc-exam.pdf") == "2026/03/abc-exam.pdf"

    def test_known_root_stripped(self):
        assert normalize_storage_key(
            "/uploads/papers/1700000000-exam.pdf", known_roots=("/uploads/papers",)
        ) == "1700000000-exam.pdf"

    def test_host_path_root_stripped(self):
        assert normalize_storage_key(
            "/srv/app/uploads/papers/2026/03/a.pdf", known_roots=("/srv/app/uploads/papers",)
        ) == "2026/03/a.pdf"

    def test_redundant_segments_dropped(self):
        assert normalize_storage_key("2026//03/./a.pdf") == "2026/03/a.pdf"

    @pytest.mark.parametrize("raw", [
        "",
        "   ",
        "/etc/passwd",
        "C:/Users/lena/exam.pdf",
        "c:\\exam.pdf",
        "2026/../../secret.pdf",
        "..",
        "./.",
    ])
    def test_rejected(self, raw):
        with pytest.raises(ValueError):
            normalize_storage_key(raw)

    def test_root_itself_rejected(self):
        with pytest.raises(ValueError):
            normalize_storage_key("/uploads/papers", known_roots=("/uploads/papers",))
