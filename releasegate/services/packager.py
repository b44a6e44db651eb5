# releasegate/services/packager.py
import io
import logging
import os
import zipfile
from pathlib import Path

from releasegate.errors import BuildError
from releasegate.models.deployment import DeployableUnit

logger = logging.getLogger(__name__)


def zip_directory(directory: str) -> bytes:
    """Zip the contents of ``directory`` (not the directory itself) into memory."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED, compresslevel=9) as zipf:
        for root, dirs, files in os.walk(directory):
            dirs.sort()
            for file in sorted(files):
                file_path = Path(root) / file
                zipf.write(file_path, file_path.relative_to(directory))
    return buf.getvalue()


def package_unit(unit: DeployableUnit) -> bytes:
    try:
        archive = zip_directory(unit.source_dir)
    except (OSError, zipfile.BadZipFile) as e:
        raise BuildError(unit.name, f"packaging failed: {e}") from e
    logger.info("packaged %s (%d bytes)", unit.name, len(archive))
    return archive


__all__ = ["zip_directory", "package_unit"]
