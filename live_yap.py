#!/usr/bin/env python3
"""
Live Yap - live microphone transcription with optional translation

Captures the microphone in short segments, transcribes each one with `yap`
and, when a target language is given, translates every line with a local
model while captions keep flowing. Translations appear in spoken order.

Usage:
    python live_yap.py -s en-US                # live transcription only
    python live_yap.py -s ja-JP -t en          # live JA->EN translation
    python live_yap.py -s ja-JP -t en --policy batched --batch-size 4

Configuration can also come from the environment or a .env file
(TARGET_LANG, TRANSLATION_MODEL, ENGINE, DISPATCH_POLICY, ...).
"""

import argparse
import logging
import sys

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from config.logging_config import get_logger, set_console_level
from config.settings import Settings
from core.live.dependencies import need_all, session_requirements
from core.live.errors import CaptureError, MissingDependencyError
from core.live.session import LiveSession
from engines.base import EngineType
from core.pipeline.models import DispatchPolicy

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Live microphone transcription with optional in-order translation",
        epilog="""
Examples:
  %(prog)s -s en-US                # live transcription only
  %(prog)s -s ja-JP -t en          # live JA->EN translation
  %(prog)s -s ja-JP -t en --engine llama-cpp --model ~/models/qwen.gguf
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument(
        '-d', '--device',
        help='Capture device (default: ":0")'
    )

    parser.add_argument(
        '-s', '--source-locale',
        help='Source locale for transcription (default: en-US)'
    )

    parser.add_argument(
        '-t', '--target-lang',
        help='Translate into this language (default: transcription only)'
    )

    parser.add_argument(
        '-n', '--seg-seconds',
        type=int,
        help='Audio segment length in seconds (default: 2)'
    )

    parser.add_argument(
        '-w', '--window',
        type=int,
        help='Number of lines shown (default: 3)'
    )

    parser.add_argument(
        '--engine',
        choices=[t.value for t in EngineType],
        help='Translation engine (default: ollama)'
    )

    parser.add_argument(
        '--model',
        help='Translation model (ollama model name or llama.cpp model path)'
    )

    parser.add_argument(
        '--policy',
        choices=[p.value for p in DispatchPolicy],
        help='Dispatch policy (default: per-chunk)'
    )

    parser.add_argument(
        '--batch-size',
        type=int,
        help='Chunks per batch with --policy batched (default: 3)'
    )

    parser.add_argument(
        '--flush-interval',
        type=float,
        help='Seconds before a partial batch is flushed (default: 1.0)'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Show info-level log messages on the terminal'
    )

    parser.add_argument(
        '--no-progress',
        action='store_true',
        help='Hide the progress bar while finishing translations'
    )

    return parser


def settings_from_args(args: argparse.Namespace) -> Settings:
    """Settings from env/.env, overridden by whatever was given on the command line"""
    overrides = {
        'device': args.device,
        'source_locale': args.source_locale,
        'target_lang': args.target_lang,
        'seg_seconds': args.seg_seconds,
        'window': args.window,
        'engine': args.engine,
        'dispatch_policy': args.policy,
        'batch_size': args.batch_size,
        'flush_interval': args.flush_interval,
    }
    overrides = {k: v for k, v in overrides.items() if v is not None}

    if args.model:
        if overrides.get('engine') == EngineType.LLAMA_CPP.value:
            overrides['llama_cpp_model'] = args.model
        else:
            overrides['translation_model'] = args.model
    if args.no_progress:
        overrides['show_progress'] = False

    return Settings(**overrides)


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.seg_seconds is not None and args.seg_seconds < 1:
        parser.error("-n must be at least 1 second")
    if args.window is not None and args.window < 1:
        parser.error("-w must be at least 1 line")

    if args.verbose:
        set_console_level(logging.INFO)

    try:
        settings = settings_from_args(args)
        if args.verbose:
            settings.print_config()
        need_all(session_requirements(settings))
        session = LiveSession(settings)
        return session.run()

    except MissingDependencyError as e:
        print(str(e))
        return 1
    except CaptureError as e:
        print(f"\n❌ Capture error: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"\n❌ Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
