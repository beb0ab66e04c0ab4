#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Settings - Centralized configuration management
"""

from datetime import datetime
from pathlib import Path
from typing import Optional
from pydantic_settings import BaseSettings

from .constants import (
    ABANDON_TIMEOUT_SECONDS,
    BATCH_FLUSH_INTERVAL,
    BATCH_SIZE,
    DISPATCH_POLICY,
    DISPLAY_WINDOW,
    ENGINE_TIMEOUT_SECONDS,
    LLAMA_CPP_BIN,
    OLLAMA_BIN,
    OLLAMA_HOST,
    POLL_INTERVAL_SECONDS,
    SEGMENT_SECONDS,
    SESSION_STAMP_FORMAT,
    TRANSLATION_MODEL,
)


# Base directory
BASE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    """Application settings"""

    # ========== Capture ==========
    device: str = ":0"  # avfoundation input, e.g. ":0" for the default mic
    capture_format: str = "avfoundation"
    ffmpeg_bin: str = "ffmpeg"
    seg_seconds: int = SEGMENT_SECONDS

    # ========== Transcription ==========
    yap_bin: str = "yap"
    source_locale: str = "en-US"

    # ========== Translation ==========
    target_lang: str = ""  # empty = transcription only
    translation_model: str = TRANSLATION_MODEL
    engine: str = "ollama"  # ollama | ollama-http | llama-cpp | echo
    ollama_bin: str = OLLAMA_BIN
    ollama_host: str = OLLAMA_HOST
    llama_cpp_bin: str = LLAMA_CPP_BIN
    llama_cpp_model: str = ""
    llama_cpp_args: str = ""  # split on whitespace
    engine_timeout: float = ENGINE_TIMEOUT_SECONDS

    # ========== Dispatch ==========
    dispatch_policy: str = DISPATCH_POLICY  # per-chunk | batched
    batch_size: int = BATCH_SIZE
    flush_interval: float = BATCH_FLUSH_INTERVAL

    # ========== Shutdown ==========
    abandon_timeout: float = ABANDON_TIMEOUT_SECONDS
    poll_interval: float = POLL_INTERVAL_SECONDS
    show_progress: bool = True

    # ========== Display ==========
    window: int = DISPLAY_WINDOW

    # ========== Directories ==========
    logs_dir: Path = BASE_DIR / "logs"
    chunk_dir: Optional[Path] = None  # temp dir per session when unset

    class Config:
        env_file = str(BASE_DIR / ".env")
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"  # Allow extra fields from .env that aren't defined in model

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.logs_dir.mkdir(exist_ok=True, parents=True)

    def is_translating(self) -> bool:
        """Whether a target language was requested"""
        return bool(self.target_lang.strip())

    def log_file_for(self, started_at: Optional[datetime] = None) -> Path:
        """Session transcript log path, e.g. logs/yap_live_20250101_120000.log"""
        stamp = (started_at or datetime.now()).strftime(SESSION_STAMP_FORMAT)
        return self.logs_dir / f"yap_live_{stamp}.log"

    @staticmethod
    def error_log_for(log_file: Path) -> Path:
        """Diagnostics log that sits next to a transcript log"""
        return log_file.with_name(f"{log_file.stem}_errors.log")

    def print_config(self):
        """Print configuration summary"""
        print("\n" + "="*70)
        print("CONFIGURATION")
        print("="*70)
        print(f"Device:          {self.device}")
        print(f"Source Locale:   {self.source_locale}")
        print(f"Target Lang:     {self.target_lang or '(transcription only)'}")
        print(f"Segment Length:  {self.seg_seconds}s")
        if self.is_translating():
            print(f"Engine:          {self.engine}")
            print(f"Model:           {self.translation_model}")
            print(f"Dispatch:        {self.dispatch_policy}")
            if self.dispatch_policy == "batched":
                print(f"Batch:           {self.batch_size} chunks / {self.flush_interval}s")
        print("="*70 + "\n")


# Global settings instance
settings = Settings()
