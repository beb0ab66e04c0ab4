"""
Centralized constants for Live Yap.
All magic numbers for the caption pipeline live here.
"""

# ===========================================
# CAPTURE / TRANSCRIPTION
# ===========================================
CAPTURE_SAMPLE_RATE = 16000           # Hz, mono
CAPTURE_STARTUP_DELAY = 0.5           # give ffmpeg a head start
SEGMENT_SECONDS = 2                   # audio chunk length
SEGMENT_PATTERN = "%05d.wav"          # ffmpeg segment file pattern
SEGMENT_SETTLE_SECONDS = 0.05         # pause before reading a finished segment
TRANSCRIBE_TIMEOUT_SECONDS = 60       # per-segment yap timeout

# ===========================================
# DISPLAY
# ===========================================
DISPLAY_WINDOW = 3                    # lines shown in the rolling window
DISPLAY_REFRESH_PER_SECOND = 8

# ===========================================
# TRANSLATION
# ===========================================
TRANSLATION_MODEL = "llama3.1:8b"     # default ollama model
ENGINE_TIMEOUT_SECONDS = 120.0        # single engine invocation
STDOUT_TRACE_CHARS = 120              # engine stdout kept in debug trace
ERROR_TEXT_MAX_CHARS = 200            # stderr kept in diagnostics

# ===========================================
# DISPATCH
# ===========================================
DISPATCH_POLICY = "per-chunk"         # per-chunk | batched
BATCH_SIZE = 3                        # batched policy size threshold
BATCH_FLUSH_INTERVAL = 1.0            # batched policy time threshold (seconds)

# ===========================================
# SHUTDOWN
# ===========================================
ABANDON_TIMEOUT_SECONDS = 10.0        # drain waits this long for stragglers
LOOP_SHUTDOWN_TIMEOUT = 5.0           # worker loop thread join
DRAIN_WAIT_SLICE = 0.25               # channel wait granularity during drain
POLL_INTERVAL_SECONDS = 0.05          # idle tick of the session loop

# ===========================================
# OLLAMA / LLAMA.CPP
# ===========================================
OLLAMA_BIN = "ollama"
OLLAMA_HOST = "http://localhost:11434"
LLAMA_CPP_BIN = "llama-cli"

# ===========================================
# LOGGING
# ===========================================
LOG_LEVEL = 'DEBUG'                   # file gets everything, console filters
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_FILE = 'logs/live_yap.log'
LOG_MAX_SIZE_MB = 10
LOG_BACKUP_COUNT = 5
DIAGNOSTICS_TIME_FORMAT = '%Y-%m-%d %H:%M:%S'
SESSION_STAMP_FORMAT = '%Y%m%d_%H%M%S'
