import json
import logging
import os
import subprocess
import tempfile

logger = logging.getLogger(__name__)

PROBE_TIMEOUT_S = 30


def probe_duration(data: bytes, suffix: str) -> float | None:
    """Return the audio duration in seconds using ffprobe, or None if it can't be read."""
    fd, path = tempfile.mkstemp(suffix=suffix)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        result = subprocess.run(
            [
                "ffprobe",
                "-v",
                "quiet",
                "-print_format",
                "json",
                "-show_streams",
                path,
            ],
            capture_output=True,
            text=True,
            timeout=PROBE_TIMEOUT_S,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.warning(f"ffprobe unavailable or timed out: {e}")
        return None
    finally:
        os.unlink(path)

    if result.returncode != 0:
        logger.warning(f"ffprobe failed: {result.stderr[-500:]}")
        return None

    try:
        info = json.loads(result.stdout)
    except json.JSONDecodeError:
        logger.warning("ffprobe returned invalid JSON")
        return None

    for stream in info.get("streams", []):
        if stream.get("codec_type") == "audio":
            try:
                return float(stream.get("duration", 0)) or None
            except (TypeError, ValueError):
                return None
    return None
