"""Tests for run settings."""

import json
import math

import pytest

from vptsviz.config import Settings, load_settings


class TestSettings:
    """The Settings dataclass."""

    def test_defaults_match_aggregator(self):
        kwargs = Settings().mtr_kwargs()
        assert kwargs == {
            "alt_min": 0.0,
            "alt_max": math.inf,
            "interval": 200.0,
            "vvp_thresh": 2.0,
            "alpha": None,
            "legacy_cosine": False,
        }

    def test_merged_skips_none(self):
        merged = Settings(alt_min=100).merged(alt_min=None, alpha=45.0)
        assert merged.alt_min == 100
        assert merged.alpha == 45.0

    def test_merged_unknown_key(self):
        with pytest.raises(ValueError, match="Unknown settings"):
            Settings().merged(altitude=3)

    def test_unresolved_kwargs_rejected(self):
        with pytest.raises(ValueError, match="resolved"):
            Settings(interval=None).mtr_kwargs()

    def test_resolved_for(self, profiles):
        resolved = Settings(interval=None, vvp_thresh=None).resolved_for(profiles)
        assert resolved.interval == 200.0
        assert resolved.vvp_thresh == 2.0

    def test_resolved_for_keeps_explicit_values(self, profiles):
        resolved = Settings(interval=50.0, vvp_thresh=1.0).resolved_for(profiles)
        assert (resolved.interval, resolved.vvp_thresh) == (50.0, 1.0)

    def test_to_dict_serialises_infinity(self):
        data = Settings().to_dict()
        assert data["alt_max"] is None
        json.dumps(data)


class TestLoadSettings:
    """Reading settings.json."""

    def test_load(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({
            "alt_min": 200, "alt_max": None, "interval": None, "alpha": 220, "timezone": "Europe/Brussels",
        }))
        settings = load_settings(path)
        assert settings.alt_min == 200
        assert settings.alt_max == math.inf
        assert settings.interval is None
        assert settings.alpha == 220
        assert settings.vvp_thresh == 2.0

    def test_round_trip_through_dict(self, tmp_path):
        original = Settings(alt_min=100, alt_max=3000, title="x")
        path = tmp_path / "settings.json"
        path.write_text(json.dumps(original.to_dict()))
        assert load_settings(path) == original

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / "nope.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text("{alt_min: 1")
        with pytest.raises(ValueError, match="Failed to parse"):
            load_settings(path)

    def test_not_an_object(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text("[1, 2]")
        with pytest.raises(ValueError, match="JSON object"):
            load_settings(path)

    def test_unknown_keys(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"alt_mni": 1}))
        with pytest.raises(ValueError, match="alt_mni"):
            load_settings(path)
