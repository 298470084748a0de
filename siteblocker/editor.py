import logging
import os
import shlex
import subprocess
import tempfile
from typing import List, Sequence

from siteblocker.sites import parse_site_list

logger = logging.getLogger(__name__)

EDITOR_PROMPT = "# Add sites to block. Separate by newline\n# Lines starting with # are ignored\n"


class EditorError(Exception):
    pass


def edit_sites(current: Sequence[str], editor: str) -> List[str]:
    """Lets the user edit the blocked sites in `editor` and returns the result."""
    fd, path = tempfile.mkstemp(prefix="site-blocker-", suffix=".txt")
    os.close(fd)
    try:
        with open(path, "w", encoding="utf-8") as f:
            f.write("\n".join(current))
            f.write("\n\n" + EDITOR_PROMPT)

        logger.debug("editing %s in %s", path, editor)
        try:
            status = subprocess.run(shlex.split(editor) + [path]).returncode
        except OSError as err:
            raise EditorError(f"Could not start editor {editor!r}: {err}") from err
        if status != 0:
            raise EditorError(f"Editor {editor!r} exited with status {status}")

        with open(path, "r", encoding="utf-8") as f:
            return parse_site_list(f.read())
    finally:
        os.unlink(path)
