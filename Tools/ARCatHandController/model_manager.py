"""
Provisioning of the MediaPipe hand landmarker model.

The detector always loads the model from the per-user cache. The cache is
filled from a model bundled with the application when the profile names
one, or downloaded from the MediaPipe model bucket otherwise. A ``.task``
file is a zip archive; a cached file that is not one is treated as a broken
download and replaced.
"""

import os
import shutil
import sys
import tempfile
import time
import urllib.request
import zipfile
from pathlib import Path
from typing import Callable, Optional, TypeVar

from .config import LOG_APP_NAME
from .logger import get_logger

logger = get_logger("ModelManager")

HAND_LANDMARKER_URL = (
    "https://storage.googleapis.com/mediapipe-models/hand_landmarker/"
    "hand_landmarker/float16/latest/hand_landmarker.task"
)
HAND_LANDMARKER_FILENAME = "hand_landmarker.task"

DOWNLOAD_TIMEOUT_SEC = 120
DOWNLOAD_ATTEMPTS = 3
RETRY_BACKOFF_SEC = 2.0

T = TypeVar("T")


def get_model_cache_dir() -> Path:
    """Per-user model cache: %LOCALAPPDATA% on Windows, XDG cache elsewhere."""
    if sys.platform == "win32":
        root = Path(os.environ.get("LOCALAPPDATA") or Path.home())
    else:
        root = Path(os.environ.get("XDG_CACHE_HOME") or Path.home() / ".cache")

    cache_dir = root / LOG_APP_NAME / "mediapipe_models"
    cache_dir.mkdir(parents=True, exist_ok=True)
    return cache_dir


def is_valid_model(path: Path) -> bool:
    """True if ``path`` looks like a usable ``.task`` bundle."""
    return path.is_file() and path.stat().st_size > 0 and zipfile.is_zipfile(path)


def ensure_hand_landmarker_model(
    bundled_path: Optional[str] = None,
    cache_dir: Optional[Path] = None
) -> str:
    """
    Return a path to a usable hand landmarker model.

    Args:
        bundled_path: Model shipped with the application (profile ``modelPath``).
        cache_dir: Override of the cache directory.

    Returns:
        Path of the cached model.

    Raises:
        FileNotFoundError: If ``bundled_path`` is given but is not a valid model.
        RuntimeError: If every download attempt fails.
    """
    cache_dir = Path(cache_dir) if cache_dir is not None else get_model_cache_dir()
    cached = cache_dir / HAND_LANDMARKER_FILENAME

    if is_valid_model(cached):
        logger.debug(f"Using cached model: {cached}")
        return str(cached)
    if cached.exists():
        logger.warning(f"Discarding invalid cached model: {cached}")
        cached.unlink()

    if bundled_path:
        source = Path(bundled_path)
        if not is_valid_model(source):
            raise FileNotFoundError(f"Bundled model missing or invalid: {source}")
        _atomic_write(cached, lambda tmp: shutil.copyfile(source, tmp))
        logger.info(f"Bundled model copied to {cached}")
        return str(cached)

    logger.info(f"Downloading hand landmarker model to {cached}")
    try:
        _with_retries(lambda: _atomic_write(cached, _fetch_into), DOWNLOAD_ATTEMPTS)
    except OSError as e:
        raise RuntimeError(
            f"Could not download the hand landmarker model after {DOWNLOAD_ATTEMPTS} attempts; "
            f"check the network connection or set modelPath in the profile"
        ) from e

    if not is_valid_model(cached):
        cached.unlink()
        raise RuntimeError(f"Downloaded file is not a model bundle: {HAND_LANDMARKER_URL}")

    logger.info(f"Model ready ({cached.stat().st_size / 1024 / 1024:.1f} MB)")
    return str(cached)


def _with_retries(action: Callable[[], T], attempts: int) -> T:
    """Run ``action``, retrying OSErrors with a linear backoff."""
    for attempt in range(1, attempts + 1):
        try:
            return action()
        except OSError as e:
            if attempt == attempts:
                raise
            logger.warning(f"Attempt {attempt}/{attempts} failed: {e}")
            time.sleep(RETRY_BACKOFF_SEC * attempt)
    raise ValueError("attempts must be at least 1")


def _fetch_into(path: str) -> None:
    request = urllib.request.Request(
        HAND_LANDMARKER_URL,
        headers={"User-Agent": f"{LOG_APP_NAME}/1.0"}
    )
    with urllib.request.urlopen(request, timeout=DOWNLOAD_TIMEOUT_SEC) as response, open(path, "wb") as out:
        shutil.copyfileobj(response, out)


def _atomic_write(dest: Path, writer: Callable[[str], None]) -> None:
    """Let ``writer`` fill a temp file next to ``dest``, then move it into place."""
    fd, tmp = tempfile.mkstemp(dir=dest.parent, suffix=".part")
    os.close(fd)
    try:
        writer(tmp)
        os.replace(tmp, dest)
    finally:
        if os.path.exists(tmp):
            os.unlink(tmp)
