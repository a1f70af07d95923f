"""
File helpers for the release cache snapshot.
"""

import json
import os
import tempfile
from typing import Any, Dict, Optional

import aiofiles  # type: ignore[import-untyped]

from openjdk_api.log_utils import logger


async def atomic_write_json(file_path: str, data: Dict[str, Any]) -> bool:
    """
    Atomically write a mapping to the given path as JSON.

    The content is written to a temporary file in the same directory which then
    replaces the target, so readers never see a partial snapshot.

    Parameters:
        file_path (str): Destination filesystem path for the JSON file.
        data (Dict[str, Any]): JSON-serializable mapping to write.

    Returns:
        bool: `True` if the file was written and moved into place, `False` on error.
    """
    directory = os.path.dirname(file_path) or "."
    try:
        os.makedirs(directory, exist_ok=True)
        temp_fd, temp_path = tempfile.mkstemp(dir=directory, prefix="tmp-", suffix=".json")
        os.close(temp_fd)
    except OSError as e:
        logger.error(f"Could not create temporary file for {file_path}: {e}")
        return False

    try:
        payload = json.dumps(data)
        async with aiofiles.open(temp_path, "w", encoding="utf-8") as f:
            await f.write(payload)
        os.replace(temp_path, file_path)
    except (OSError, TypeError, ValueError) as e:
        logger.error(f"Could not write to {file_path}: {e}")
        return False
    finally:
        if os.path.exists(temp_path):
            try:
                os.remove(temp_path)
            except OSError:
                pass
    return True


async def read_json(file_path: str) -> Optional[Any]:
    """
    Load and parse JSON from the given file path.

    Returns:
        The parsed JSON value, or `None` if the file is missing or cannot be read or decoded.
    """
    if not os.path.exists(file_path):
        return None

    try:
        async with aiofiles.open(file_path, "r", encoding="utf-8") as f:
            content = await f.read()
        return json.loads(content)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.error(f"Could not read JSON file {file_path}: {e}")
        return None
