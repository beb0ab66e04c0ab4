"""
Tests for live_yap.py argument handling and dependency checks
"""
import pytest

import live_yap
from core.live import dependencies
from core.live.dependencies import need, session_requirements
from core.live.errors import MissingDependencyError


class TestDependencies:
    """Test PATH checks."""

    def test_need_found(self, monkeypatch):
        """A program on PATH resolves to its location."""
        monkeypatch.setattr(dependencies.shutil, "which", lambda name: f"/usr/bin/{name}")
        assert need("ffmpeg") == "/usr/bin/ffmpeg"

    def test_need_missing(self, monkeypatch):
        """A missing program raises with its name."""
        monkeypatch.setattr(dependencies.shutil, "which", lambda name: None)
        with pytest.raises(MissingDependencyError, match="Missing dependency: yap"):
            need("yap")

    def test_session_requirements(self, test_settings):
        """The engine binary is only needed when translating with a CLI engine."""
        assert session_requirements(test_settings) == ["ffmpeg", "yap"]
        ollama = test_settings.model_copy(update={"engine": "ollama"})
        assert session_requirements(ollama) == ["ffmpeg", "yap", "ollama"]
        listen_only = test_settings.model_copy(update={"engine": "ollama", "target_lang": ""})
        assert session_requirements(listen_only) == ["ffmpeg", "yap"]


class TestCommandLine:
    """Test option parsing and exit codes."""

    def test_options_override_settings(self):
        """Command-line values land in Settings."""
        args = live_yap.build_parser().parse_args([
            "-d", ":2", "-s", "ja-JP", "-t", "en", "-n", "3", "-w", "5",
            "--policy", "batched", "--batch-size", "4", "--flush-interval", "0.5",
            "--model", "qwen2.5:7b",
        ])
        settings = live_yap.settings_from_args(args)

        assert settings.device == ":2"
        assert settings.source_locale == "ja-JP"
        assert settings.target_lang == "en"
        assert settings.seg_seconds == 3
        assert settings.window == 5
        assert settings.dispatch_policy == "batched"
        assert settings.batch_size == 4
        assert settings.flush_interval == 0.5
        assert settings.translation_model == "qwen2.5:7b"

    def test_model_goes_to_llama_cpp(self):
        """With llama.cpp, --model is the model file."""
        args = live_yap.build_parser().parse_args(["-t", "en", "--engine", "llama-cpp", "--model", "/m.gguf"])
        assert live_yap.settings_from_args(args).llama_cpp_model == "/m.gguf"

    def test_invalid_segment_length(self):
        """Zero-second segments are rejected by the parser."""
        with pytest.raises(SystemExit):
            live_yap.main(["-n", "0"])

    def test_missing_dependency_exit_code(self, monkeypatch, capsys):
        """A missing program prints its name and exits with 1."""
        monkeypatch.setattr(dependencies.shutil, "which", lambda name: None)
        assert live_yap.main(["-s", "en-US"]) == 1
        assert "Missing dependency: ffmpeg" in capsys.readouterr().out
