import logging
import os
from typing import Optional

logger = logging.getLogger(__name__)


def cleanup(artifact_path: Optional[str], work_dir: str) -> bool:
    """
    Removes the downloaded file, then the work directory if nothing else is left in it.
    Never raises. Returns True when the directory is gone afterwards.
    """
    if artifact_path:
        try:
            os.remove(artifact_path)
        except FileNotFoundError:
            logger.debug(f"Video file already gone: {artifact_path}")
        except OSError as e:
            logger.warning(f"Failed to remove video file: {e}")

    try:
        leftovers = os.listdir(work_dir)
    except FileNotFoundError:
        return True
    except OSError as e:
        logger.warning(f"Failed to read video directory {work_dir}: {e}")
        return False

    if leftovers:
        logger.warning(f"Video directory {work_dir} not empty, keeping it: {leftovers}")
        return False

    try:
        os.rmdir(work_dir)
    except OSError as e:
        logger.warning(f"Failed to remove video directory: {e}")
        return False
    return True
