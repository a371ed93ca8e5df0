"""
whisper_transcribe.transcribe.models - whisper.cpp model catalog and fetcher.

Lists the ggml models published for whisper.cpp, resolves where they live
on disk and downloads missing ones from Hugging Face.
"""

from __future__ import annotations

import os
import urllib.error
import urllib.request
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from whisper_transcribe.cancel import CancelToken
from whisper_transcribe.exceptions import ToolInvocationError, ValidationError
from whisper_transcribe.logging import logger

HUGGING_FACE_BASE_URL = "https://huggingface.co/ggerganov/whisper.cpp/resolve/main"

CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class ModelInfo:
    """A downloadable whisper.cpp model."""

    name: str
    filename: str
    size: str

    @property
    def url(self) -> str:
        return f"{HUGGING_FACE_BASE_URL}/{self.filename}"


AVAILABLE_MODELS: tuple[ModelInfo, ...] = (
    ModelInfo("tiny", "ggml-tiny.bin", "75 MB"),
    ModelInfo("tiny.en", "ggml-tiny.en.bin", "75 MB"),
    ModelInfo("base", "ggml-base.bin", "142 MB"),
    ModelInfo("base.en", "ggml-base.en.bin", "142 MB"),
    ModelInfo("small", "ggml-small.bin", "466 MB"),
    ModelInfo("small.en", "ggml-small.en.bin", "466 MB"),
    ModelInfo("medium", "ggml-medium.bin", "1.5 GB"),
    ModelInfo("medium.en", "ggml-medium.en.bin", "1.5 GB"),
    ModelInfo("large-v1", "ggml-large-v1.bin", "2.9 GB"),
    ModelInfo("large-v2", "ggml-large-v2.bin", "2.9 GB"),
    ModelInfo("large-v3", "ggml-large-v3.bin", "2.9 GB"),
    ModelInfo("large", "ggml-large-v3.bin", "2.9 GB"),
)

MODEL_NAMES: tuple[str, ...] = tuple(m.name for m in AVAILABLE_MODELS)

ProgressCallback = Callable[[int, int], None]


def get_model_info(name: str) -> ModelInfo:
    """Look up a catalog entry by model name.

    Raises:
        ValidationError: If the name is not in the catalog
    """
    for info in AVAILABLE_MODELS:
        if info.name == name:
            return info
    raise ValidationError(f"Unknown model: {name}")


def get_models_dir() -> Path:
    """Directory where downloaded models are stored."""
    env_dir = os.environ.get("WHISPER_MODEL_PATH")
    if env_dir:
        return Path(env_dir)
    return Path.home() / ".cache" / "whisper"


def get_model_path(name: str) -> Path:
    return get_models_dir() / get_model_info(name).filename


def is_downloaded(name: str) -> bool:
    """Check whether a catalog model is present in the models directory."""
    try:
        return get_model_path(name).exists()
    except ValidationError:
        return False


def download_model(
    name: str,
    on_progress: ProgressCallback | None = None,
    cancel_token: CancelToken | None = None,
    timeout: float = 30.0,
) -> Path:
    """Download a model into the models directory.

    The body is streamed into ``<file>.tmp`` and renamed on completion so an
    interrupted download never leaves a truncated model behind.

    Args:
        name: Catalog model name
        on_progress: Called with (downloaded_bytes, total_bytes); total is 0
            when the server sends no Content-Length
        cancel_token: Checked between chunks
        timeout: Socket timeout in seconds

    Returns:
        Path to the downloaded model

    Raises:
        ValidationError: Unknown model name
        ToolInvocationError: HTTP or filesystem failure
        PipelineCancelled: Token cancelled mid-download
    """
    info = get_model_info(name)
    models_dir = get_models_dir()
    dest_path = models_dir / info.filename
    tmp_path = dest_path.with_name(dest_path.name + ".tmp")

    logger.debug("Downloading %s from %s", name, info.url)

    try:
        models_dir.mkdir(parents=True, exist_ok=True)
        with urllib.request.urlopen(info.url, timeout=timeout) as response:
            status = getattr(response, "status", 200)
            if status != 200:
                raise ToolInvocationError(f"download failed: HTTP {status}")

            total = int(response.headers.get("Content-Length") or 0)
            downloaded = 0
            with open(tmp_path, "wb") as out:
                while True:
                    if cancel_token is not None:
                        cancel_token.raise_if_cancelled()
                    chunk = response.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    out.write(chunk)
                    downloaded += len(chunk)
                    if on_progress:
                        on_progress(downloaded, total)
        tmp_path.replace(dest_path)
    except urllib.error.URLError as e:
        raise ToolInvocationError(f"download request failed: {e}") from e
    except OSError as e:
        raise ToolInvocationError(f"download write failed: {e}") from e
    finally:
        tmp_path.unlink(missing_ok=True)

    return dest_path
