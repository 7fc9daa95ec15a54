"""Tests for ffprobe duration probing."""

import json
import os
import subprocess
from unittest.mock import Mock, patch

from audio import probe_duration


def _probe_result(streams, returncode=0):
    return Mock(returncode=returncode, stdout=json.dumps({"streams": streams}), stderr="boom")


@patch("audio.subprocess.run")
def test_reads_audio_stream_duration(mock_run):
    mock_run.return_value = _probe_result([{"codec_type": "video"}, {"codec_type": "audio", "duration": "183.4"}])
    assert probe_duration(b"data", ".mp3") == 183.4
    cmd = mock_run.call_args[0][0]
    assert cmd[0] == "ffprobe"
    assert cmd[-1].endswith(".mp3")


@patch("audio.subprocess.run")
def test_failed_probe(mock_run):
    mock_run.return_value = _probe_result([], returncode=1)
    assert probe_duration(b"data", ".mp3") is None


@patch("audio.subprocess.run")
def test_no_audio_stream(mock_run):
    mock_run.return_value = _probe_result([{"codec_type": "video"}])
    assert probe_duration(b"data", ".mp3") is None


@patch("audio.subprocess.run", side_effect=FileNotFoundError("ffprobe"))
def test_ffprobe_missing(mock_run):
    assert probe_duration(b"data", ".mp3") is None


@patch("audio.subprocess.run", side_effect=subprocess.TimeoutExpired("ffprobe", 30))
def test_timeout(mock_run):
    assert probe_duration(b"data", ".mp3") is None


@patch("audio.subprocess.run")
def test_temp_file_removed(mock_run):
    mock_run.return_value = _probe_result([])
    probe_duration(b"data", ".mp3")
    path = mock_run.call_args[0][0][-1]
    assert not os.path.exists(path)
