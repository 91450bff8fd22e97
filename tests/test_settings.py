"""
Unit tests for settings loading and backend selection.

Rules:
- missing file / invalid JSON / non-object -> defaults
- facets: a mapping disables the names set to false, a list enables only those
- an unknown facet name is ignored (all facets stay on)
"""

import json
import tempfile
import unittest
from pathlib import Path

from regurl.actions import ACK_DELAY_SECONDS
from regurl.backend import HttpBackend, JsonFileBackend
from regurl.errors import RegurlError
from regurl.filters import ALL_FACETS, Facet
from regurl.settings import (
    FILE_BACKEND,
    HTTP_BACKEND,
    BackendSettings,
    BuilderSettings,
    build_backend,
    load_settings,
    settings_from_dict,
)


class TestLoadSettings(unittest.TestCase):
    def _write(self, d: str, content: str) -> Path:
        p = Path(d) / "settings.json"
        p.write_text(content, encoding="utf-8")
        return p

    def test_no_path_gives_defaults(self) -> None:
        settings = load_settings(None)
        self.assertEqual(settings, BuilderSettings())
        self.assertTrue(settings.can_get_public_url)
        self.assertEqual(settings.facets, ALL_FACETS)
        self.assertEqual(settings.copy_ack_seconds, ACK_DELAY_SECONDS)

    def test_missing_file_gives_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            self.assertEqual(load_settings(Path(d) / "nope.json"), BuilderSettings())

    def test_invalid_json_gives_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            self.assertEqual(load_settings(self._write(d, "{oops")), BuilderSettings())
            self.assertEqual(load_settings(self._write(d, "[1, 2]")), BuilderSettings())

    def test_full_file(self) -> None:
        payload = {
            "registrationUrlPath": "/s/registration",
            "canGetPublicUrl": False,
            "facets": {"timeRange": False, "grade": True},
            "copyAckSeconds": 2,
            "backend": {"kind": "HTTP", "url": "https://api.example.org", "timeout": "5"},
        }
        with tempfile.TemporaryDirectory() as d:
            settings = load_settings(self._write(d, json.dumps(payload)))

        self.assertEqual(settings.registration_url_path, "/s/registration")
        self.assertFalse(settings.can_get_public_url)
        self.assertEqual(settings.facets, ALL_FACETS - {Facet.TIME_RANGE})
        self.assertEqual(settings.copy_ack_seconds, 2.0)
        self.assertEqual(settings.backend, BackendSettings(kind=HTTP_BACKEND, url="https://api.example.org", timeout=5.0))


class TestSettingsFromDict(unittest.TestCase):
    def test_facet_list_enables_only_listed(self) -> None:
        settings = settings_from_dict({"facets": ["location", "age"]})
        self.assertEqual(settings.facets, {Facet.LOCATION, Facet.AGE})

    def test_unknown_facet_is_ignored(self) -> None:
        settings = settings_from_dict({"facets": {"weather": False}})
        self.assertEqual(settings.facets, ALL_FACETS)

    def test_bad_ack_value_falls_back(self) -> None:
        settings = settings_from_dict({"copyAckSeconds": "soon"})
        self.assertEqual(settings.copy_ack_seconds, ACK_DELAY_SECONDS)

    def test_empty_registration_path_is_none(self) -> None:
        self.assertIsNone(settings_from_dict({"registrationUrlPath": ""}).registration_url_path)

    def test_overrides_skip_none(self) -> None:
        base = settings_from_dict({"registrationUrlPath": "/s/registration"})
        same = base.with_overrides(registration_url_path=None)
        changed = base.with_overrides(registration_url_path="/register")
        self.assertEqual(same.registration_url_path, "/s/registration")
        self.assertEqual(changed.registration_url_path, "/register")


class TestBuildBackend(unittest.TestCase):
    def test_file_backend(self) -> None:
        backend = build_backend(BackendSettings(kind=FILE_BACKEND, path="data.json"))
        self.assertIsInstance(backend, JsonFileBackend)

    def test_http_backend(self) -> None:
        backend = build_backend(BackendSettings(kind=HTTP_BACKEND, url="https://api.example.org/", timeout=3))
        self.assertIsInstance(backend, HttpBackend)
        self.assertEqual(backend.api_url, "https://api.example.org")
        self.assertEqual(backend.timeout, 3)

    def test_missing_location(self) -> None:
        with self.assertRaises(RegurlError):
            build_backend(BackendSettings(kind=FILE_BACKEND))
        with self.assertRaises(RegurlError):
            build_backend(BackendSettings(kind=HTTP_BACKEND))

    def test_unknown_kind(self) -> None:
        with self.assertRaises(RegurlError):
            build_backend(BackendSettings(kind="ftp", path="x"))


if __name__ == "__main__":
    unittest.main()
