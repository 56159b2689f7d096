"""
EffectForge Configuration Tests

Tests config loading, environment overrides and option validation.

Run with: pytest tests/test_config.py -v
"""

import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest
import yaml

from forge_engine.core.config import ForgeConfig
from forge_engine.core.types import GenerationOptions, OutputType, Platform
from forge_engine.errors import OutOfRangeError, ValidationError


# =============================================================================
# LOADING
# =============================================================================

class TestLoading:

    def test_defaults(self):
        config = ForgeConfig.load(environ={})
        assert config.default_target_fps == 60
        assert config.min_fps == 30
        assert config.max_memory == 1024
        assert config.rate_limit_enabled is True

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "forge.yaml"
        path.write_text(yaml.safe_dump({"default_target_fps": 90, "mobile_particle_ceiling": 40}))

        config = ForgeConfig.load(path, environ={})

        assert config.default_target_fps == 90
        assert config.mobile_particle_ceiling == 40

    def test_json_file_ignores_unknown_keys(self, tmp_path):
        path = tmp_path / "forge.json"
        path.write_text(json.dumps({"log_level": "DEBUG", "not_a_setting": 1}))

        config = ForgeConfig.load(path, environ={})
        assert config.log_level == "DEBUG"

    def test_empty_yaml(self, tmp_path):
        path = tmp_path / "forge.yml"
        path.write_text("")
        assert ForgeConfig.load(path, environ={}) == ForgeConfig()

    @pytest.mark.parametrize("name", ["saved.yaml", "saved.json"])
    def test_save_and_load(self, tmp_path, name):
        config = ForgeConfig(default_platform="mobile", cpu_thresholds=[50.0, 75.0])
        config.save(tmp_path / name)
        assert ForgeConfig.load(tmp_path / name, environ={}) == config

    def test_for_testing(self):
        config = ForgeConfig.for_testing()
        assert config.rate_limit_enabled is False
        assert config.log_level == "DEBUG"


class TestEnvironment:

    def test_scalar_overrides(self):
        config = ForgeConfig.load(environ={
            "FORGE_DEFAULT_TARGET_FPS": "90",
            "FORGE_RATE_LIMIT_ENABLED": "false",
            "FORGE_LOG_LEVEL": "WARNING",
        })
        assert config.default_target_fps == 90
        assert config.rate_limit_enabled is False
        assert config.log_level == "WARNING"

    def test_list_overrides(self):
        config = ForgeConfig.load(environ={
            "FORGE_CPU_THRESHOLDS": "50, 75",
            "FORGE_ALLOWED_MIME_TYPES": "text/plain, text/csv",
        })
        assert config.cpu_thresholds == [50.0, 75.0]
        assert config.allowed_mime_types == ["text/plain", "text/csv"]

    def test_env_beats_file(self, tmp_path):
        path = tmp_path / "forge.yaml"
        path.write_text("max_upload_mb: 10\n")
        config = ForgeConfig.load(path, environ={"FORGE_MAX_UPLOAD_MB": "25"})
        assert config.max_upload_mb == 25


# =============================================================================
# OPTIONS
# =============================================================================

class TestGenerationOptions:

    def test_from_camel_case(self):
        options = GenerationOptions.from_dict({
            "type": "css",
            "targetFps": 90,
            "maxMemory": 256,
            "enableConstitution": False,
            "platform": "mobile",
        })
        assert options.type is OutputType.CSS
        assert options.target_fps == 90
        assert options.max_memory == 256
        assert options.enable_constitution is False
        assert options.platform is Platform.MOBILE

    def test_from_snake_case(self):
        options = GenerationOptions.from_dict({"target_fps": "45", "max_memory": 128})
        assert options.target_fps == 45
        assert options.max_memory == 128

    def test_defaults_fill_gaps(self):
        defaults = ForgeConfig(default_platform="desktop", default_type="all").generation_defaults()
        options = GenerationOptions.from_dict({}, defaults)
        assert options.platform is Platform.DESKTOP
        assert options.type is OutputType.ALL

    def test_unknown_type_is_javascript(self):
        assert GenerationOptions.from_dict({"type": "webgl"}).type is OutputType.JAVASCRIPT

    def test_bad_platform(self):
        with pytest.raises(ValidationError):
            GenerationOptions.from_dict({"platform": "console"})

    def test_bad_number(self):
        with pytest.raises(ValidationError):
            GenerationOptions.from_dict({"targetFps": "fast"})

    def test_round_trip_dict(self):
        options = GenerationOptions(type=OutputType.ALL, platform=Platform.DESKTOP)
        assert GenerationOptions.from_dict(options.to_dict()) == options


class TestValidation:

    @pytest.mark.parametrize("fps", [30, 60, 120])
    def test_fps_in_range(self, fps):
        ForgeConfig().validate_options(GenerationOptions(target_fps=fps))

    @pytest.mark.parametrize("fps", [29, 121])
    def test_fps_out_of_range(self, fps):
        with pytest.raises(OutOfRangeError) as exc:
            ForgeConfig().validate_options(GenerationOptions(target_fps=fps))
        assert exc.value.field == "targetFps"
        assert exc.value.status_code == 400

    def test_memory_out_of_range(self):
        with pytest.raises(OutOfRangeError) as exc:
            GenerationOptions(max_memory=32).validate()
        assert exc.value.field == "maxMemory"

    def test_config_bounds(self):
        config = ForgeConfig(max_fps=90)
        with pytest.raises(OutOfRangeError):
            config.validate_options(GenerationOptions(target_fps=100))
