from __future__ import annotations

import os
import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from .constants import STAGING_PREFIX, STAGING_SUFFIX


def _current_umask() -> int:
    umask = os.umask(0)
    os.umask(umask)
    return umask


@contextmanager
def staged_output(path: str) -> Iterator[str]:
    """
    Yields a temporary path next to ``path`` for building a replacement
    archive. When the block completes the temporary file is moved over
    ``path`` with ``os.replace``; if it raises, the temporary file is removed
    and ``path`` is left as it was.

    The replacement takes the permission bits of the file it replaces, or
    the usual umask-derived mode when ``path`` does not exist yet.

    Readers may keep ``path`` open while the replacement is written, which is
    what lets an archive be rewritten from itself.
    """
    target = Path(path)
    archive_dir = target.parent
    fd, temp_archive = tempfile.mkstemp(prefix=STAGING_PREFIX, suffix=STAGING_SUFFIX, dir=str(archive_dir))
    os.close(fd)
    temp_archive_path = Path(temp_archive)
    try:
        yield str(temp_archive_path)
        if target.exists():
            shutil.copymode(str(target), str(temp_archive_path))
        else:
            os.chmod(str(temp_archive_path), 0o666 & ~_current_umask())
    except BaseException:
        temp_archive_path.unlink(missing_ok=True)
        raise
    os.replace(str(temp_archive_path), str(target))
