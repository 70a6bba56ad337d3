"""Tests for the YAML settings loader."""

import pytest
import yaml

from reelcompose.effects import EffectConfig
from reelcompose.settings import DEFAULTS, default_settings, load_settings


def _write(tmp_path, data):
    path = tmp_path / "settings.yaml"
    path.write_text(yaml.dump(data))
    return path


class TestDefaults:
    def test_no_file_gives_defaults(self):
        settings = default_settings()
        assert settings["video"]["resolution"] == (720, 1280)
        assert settings["video"]["fps"] == 30
        assert settings["broll"]["start_buffer"] == 3.0
        assert settings["broll"]["max_duration"] == 4.0
        assert settings["captions"]["chunk_size"] == 3
        assert settings["storage"]["output_prefix"] == "processed-"
        assert settings["effect"]["config"] == EffectConfig()

    def test_defaults_not_mutated(self):
        settings = default_settings()
        settings["broll"]["start_buffer"] = 99
        assert DEFAULTS["broll"]["start_buffer"] == 3.0
        assert isinstance(DEFAULTS["video"]["resolution"], list)

    def test_empty_file(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("")
        assert load_settings(path)["broll"]["workers"] == 1


class TestMerging:
    def test_partial_section_keeps_other_defaults(self, tmp_path):
        settings = load_settings(_write(tmp_path, {"broll": {"max_duration": 2.5}}))
        assert settings["broll"]["max_duration"] == 2.5
        assert settings["broll"]["start_buffer"] == 3.0

    def test_effect_overrides_build_config(self, tmp_path):
        settings = load_settings(_write(tmp_path, {"effect": {"zoom_delta": 0.2, "ramp_in": 1}}))
        config = settings["effect"]["config"]
        assert config.zoom_delta == 0.2
        assert config.ramp_in == 1.0
        assert config.pan_period == 30.0

    def test_path_variables_resolved(self, tmp_path):
        settings = load_settings(_write(tmp_path, {
            "paths": {"work": str(tmp_path / "work"), "clips": "/data/broll"},
            "broll": {"library": "${clips}/city"},
        }))
        assert settings["broll"]["library"] == "/data/broll/city"
        assert settings["paths"]["work"] == str(tmp_path / "work")

    def test_unknown_path_variable(self, tmp_path):
        with pytest.raises(ValueError, match="Unknown path variable"):
            load_settings(_write(tmp_path, {"broll": {"library": "${nowhere}/x"}}))


class TestValidation:
    def test_unknown_section(self, tmp_path):
        with pytest.raises(ValueError, match="unknown section 'output'"):
            load_settings(_write(tmp_path, {"output": {"x": 1}}))

    def test_unknown_key(self, tmp_path):
        with pytest.raises(ValueError, match="unknown key 'broll.cap'"):
            load_settings(_write(tmp_path, {"broll": {"cap": 4}}))

    def test_top_level_must_be_mapping(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ValueError, match="mapping"):
            load_settings(path)

    def test_odd_resolution(self, tmp_path):
        with pytest.raises(ValueError, match="resolution"):
            load_settings(_write(tmp_path, {"video": {"resolution": [721, 1280]}}))

    def test_negative_buffer(self, tmp_path):
        with pytest.raises(ValueError, match="start_buffer"):
            load_settings(_write(tmp_path, {"broll": {"start_buffer": -1}}))

    def test_zero_buffer_allowed(self, tmp_path):
        settings = load_settings(_write(tmp_path, {"broll": {"end_buffer": 0}}))
        assert settings["broll"]["end_buffer"] == 0

    def test_zero_cap_rejected(self, tmp_path):
        with pytest.raises(ValueError, match="max_duration"):
            load_settings(_write(tmp_path, {"broll": {"max_duration": 0}}))

    def test_non_numeric(self, tmp_path):
        with pytest.raises(ValueError, match="fps"):
            load_settings(_write(tmp_path, {"video": {"fps": "thirty"}}))

    def test_workers(self, tmp_path):
        with pytest.raises(ValueError, match="workers"):
            load_settings(_write(tmp_path, {"broll": {"workers": 0}}))

    def test_chunk_size(self, tmp_path):
        with pytest.raises(ValueError, match="chunk_size"):
            load_settings(_write(tmp_path, {"captions": {"chunk_size": 0}}))

    def test_invalid_effect(self, tmp_path):
        with pytest.raises(ValueError, match="exceeds"):
            load_settings(_write(tmp_path, {"effect": {"ramp_in": 8, "ramp_out": 4}}))

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / "nope.yaml")

    @pytest.mark.parametrize("text", ["broll: 3\n", "paths: /tmp\n", "effect: [1, 2]\n"])
    def test_section_must_be_mapping(self, tmp_path, text):
        path = tmp_path / "settings.yaml"
        path.write_text(text)
        with pytest.raises(ValueError, match="must be a mapping"):
            load_settings(path)

    def test_empty_section_keeps_defaults(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("broll:\n")
        assert load_settings(path)["broll"]["max_duration"] == 4.0


class TestCaptionColor:
    def test_default_is_yellow(self):
        assert default_settings()["captions"]["rgb"] == (255, 255, 0)

    def test_custom_color(self, tmp_path):
        settings = load_settings(_write(tmp_path, {"captions": {"color": "#00FF80"}}))
        assert settings["captions"]["rgb"] == (0, 255, 128)

    def test_bad_hex(self, tmp_path):
        with pytest.raises(ValueError, match="captions.color"):
            load_settings(_write(tmp_path, {"captions": {"color": "#FFF"}}))

    def test_unquoted_yaml_color_is_a_comment(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("captions:\n  color: #FFFF00\n")
        with pytest.raises(ValueError, match="captions.color"):
            load_settings(path)
