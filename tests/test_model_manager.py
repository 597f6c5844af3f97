import zipfile

import pytest

from ARCatHandController import model_manager
from ARCatHandController.model_manager import (
    HAND_LANDMARKER_FILENAME,
    ensure_hand_landmarker_model,
    is_valid_model,
)


def write_model(path, payload=b"tflite"):
    with zipfile.ZipFile(path, "w") as bundle:
        bundle.writestr("hand_landmarks_detector.tflite", payload)
    return path


def test_is_valid_model(tmp_path):
    assert is_valid_model(write_model(tmp_path / "ok.task"))
    garbage = tmp_path / "garbage.task"
    garbage.write_bytes(b"<html>rate limited</html>")
    assert not is_valid_model(garbage)
    assert not is_valid_model(tmp_path / "missing.task")


def test_cached_model_is_reused(tmp_path):
    cached = write_model(tmp_path / HAND_LANDMARKER_FILENAME)
    assert ensure_hand_landmarker_model(cache_dir=tmp_path) == str(cached)


def test_bundled_model_copied_into_cache(tmp_path):
    bundled = write_model(tmp_path / "bundled.task", b"bundled")
    cache = tmp_path / "cache"
    cache.mkdir()

    path = ensure_hand_landmarker_model(str(bundled), cache_dir=cache)

    assert path == str(cache / HAND_LANDMARKER_FILENAME)
    with zipfile.ZipFile(path) as bundle:
        assert bundle.read("hand_landmarks_detector.tflite") == b"bundled"
    assert [p.name for p in cache.iterdir()] == [HAND_LANDMARKER_FILENAME]


def test_broken_cache_replaced(tmp_path):
    cache = tmp_path / "cache"
    cache.mkdir()
    (cache / HAND_LANDMARKER_FILENAME).write_bytes(b"truncated")
    bundled = write_model(tmp_path / "bundled.task")

    path = ensure_hand_landmarker_model(str(bundled), cache_dir=cache)

    assert is_valid_model(cache / HAND_LANDMARKER_FILENAME)
    assert path == str(cache / HAND_LANDMARKER_FILENAME)


def test_missing_bundled_model(tmp_path):
    with pytest.raises(FileNotFoundError):
        ensure_hand_landmarker_model(str(tmp_path / "nope.task"), cache_dir=tmp_path)


def test_download_failure_after_retries(tmp_path, monkeypatch):
    calls = []

    def offline(path):
        calls.append(path)
        raise OSError("network unreachable")

    monkeypatch.setattr(model_manager, "_fetch_into", offline)
    monkeypatch.setattr(model_manager, "RETRY_BACKOFF_SEC", 0.0)

    with pytest.raises(RuntimeError):
        ensure_hand_landmarker_model(cache_dir=tmp_path)

    assert len(calls) == model_manager.DOWNLOAD_ATTEMPTS
    assert list(tmp_path.iterdir()) == []


def test_download_success(tmp_path, monkeypatch):
    monkeypatch.setattr(model_manager, "_fetch_into", lambda path: write_model(path))

    path = ensure_hand_landmarker_model(cache_dir=tmp_path)

    assert path == str(tmp_path / HAND_LANDMARKER_FILENAME)
    assert is_valid_model(tmp_path / HAND_LANDMARKER_FILENAME)
