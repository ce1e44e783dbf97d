"""Low-level JSON file I/O for the file-backed document store."""
import json
import logging
import os
import shutil
import sys
import tempfile
import time
from typing import Any

logger = logging.getLogger(__name__)


def load_json(file_path: str, retry_count: int = 3, retry_delay: float = 0.1) -> Any:
    """
    Load and parse a JSON document with UTF-8 encoding.

    Args:
        file_path: Path to JSON file
        retry_count: Number of retry attempts for permission errors (default: 3)
        retry_delay: Delay in seconds between retries (default: 0.1)

    Returns:
        Parsed JSON content (array or object)

    Raises:
        FileNotFoundError: If file doesn't exist
        json.JSONDecodeError: If JSON is malformed
        PermissionError: If file not readable after retries
    """
    if not os.path.exists(file_path):
        raise FileNotFoundError(f"File not found: {file_path}")

    for attempt in range(retry_count):
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                return json.load(f)
        except PermissionError:
            if attempt < retry_count - 1:
                time.sleep(retry_delay)
                continue
        except json.JSONDecodeError as e:
            raise json.JSONDecodeError(
                f"Malformed JSON in {file_path}: {e.msg}",
                e.doc,
                e.pos
            )

    raise PermissionError(f"Cannot read file after {retry_count} attempts: {file_path}")


def save_json(file_path: str, data: Any, backup: bool = True) -> None:
    """
    Replace a JSON document atomically with UTF-8 encoding.

    The whole document is written to a temp file in the same directory and
    renamed over the target, so readers see either the old or the new value.

    Args:
        file_path: Path to JSON file
        data: JSON-serializable document
        backup: If True, copy the previous value to <file>.backup first

    Raises:
        IOError: If the backup or the write fails
    """
    dir_path = os.path.dirname(file_path)
    if dir_path and not os.path.exists(dir_path):
        os.makedirs(dir_path, exist_ok=True)

    if backup and os.path.exists(file_path):
        try:
            shutil.copy2(file_path, f"{file_path}.backup")
        except (IOError, PermissionError) as e:
            raise IOError(f"Failed to create backup: {e}")

    temp_fd, temp_path = tempfile.mkstemp(
        dir=dir_path if dir_path else ".",
        prefix=".tmp_",
        suffix=".json"
    )

    try:
        with os.fdopen(temp_fd, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
            f.flush()
            os.fsync(f.fileno())

        # os.replace can fail on Windows while another process holds the file
        if sys.platform == "win32":
            for attempt in range(3):
                try:
                    os.replace(temp_path, file_path)
                    break
                except PermissionError:
                    if attempt == 2:
                        raise
                    time.sleep(0.1)
        else:
            os.replace(temp_path, file_path)

    except (OSError, TypeError, ValueError) as e:
        if os.path.exists(temp_path):
            try:
                os.remove(temp_path)
            except OSError:
                logger.warning("Could not remove temp file %s", temp_path)
        raise IOError(f"Failed to write file {file_path}: {e}")


def delete_json(file_path: str, backup: bool = True) -> bool:
    """
    Delete a JSON document.

    Args:
        file_path: Path to JSON file
        backup: If True, keep the removed value as <file>.backup

    Returns:
        bool: True if a file was removed, False if it didn't exist

    Raises:
        IOError: If removal fails
    """
    if not os.path.exists(file_path):
        return False

    try:
        if backup:
            shutil.copy2(file_path, f"{file_path}.backup")
        os.remove(file_path)
    except OSError as e:
        raise IOError(f"Failed to delete file {file_path}: {e}")

    return True
