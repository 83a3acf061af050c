import os
import tempfile


def atomic_write_text(file_path: str, content: str) -> None:
    """
    Write a text file as a whole-file overwrite.

    The content goes to a temporary file in the same directory which then
    replaces the target, so a crash mid-write leaves the previous version intact.

    Args:
        file_path: Destination path. Parent directories are created if needed.
        content: Text to write (UTF-8).
    """
    directory = os.path.dirname(os.path.abspath(file_path))
    os.makedirs(directory, exist_ok=True)

    fd, tmp_path = tempfile.mkstemp(
        dir=directory, prefix=".tmp-", suffix=os.path.basename(file_path)
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, file_path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise
