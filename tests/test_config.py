"""Tests for configuration loading."""

from styles_outfit.config import StageScheduleConfig, StylesConfig, load_config


class TestStylesConfig:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("OPENROUTER_API_KEY", raising=False)
        config = StylesConfig(_env_file=None)

        assert config.openrouter_api_key is None
        assert config.upload.max_file_size == 10 * 1024 * 1024
        assert config.generation.image_output is False
        assert config.openrouter.completions_url == "https://openrouter.ai/api/v1/chat/completions"
        assert config.abort_on_cancel

    def test_api_key_from_environment(self, monkeypatch):
        monkeypatch.setenv("OPENROUTER_API_KEY", "sk-or-env")

        assert load_config().openrouter_api_key == "sk-or-env"

    def test_nested_override(self, monkeypatch):
        monkeypatch.setenv("GENERATION__IMAGE_OUTPUT", "true")
        monkeypatch.setenv("GENERATION__MODEL", "google/gemini-2.5-flash-image-preview")

        config = StylesConfig(_env_file=None)

        assert config.generation.image_output is True
        assert config.generation.model == "google/gemini-2.5-flash-image-preview"


class TestStageSchedule:
    def test_default_offsets(self):
        schedule = StageScheduleConfig()

        assert [schedule.preparing, schedule.uploading, schedule.processing,
                schedule.generating, schedule.finishing] == [0.0, 1.0, 2.0, 8.0, 15.0]

    def test_scaled(self):
        scaled = StageScheduleConfig().scaled(0.5)

        assert scaled.generating == 4.0
        assert scaled.preparing == 0.0
