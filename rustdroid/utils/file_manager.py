import fnmatch
import os
import shutil
from pathlib import Path
from ..cli_logger import logger

# -------------------- Helpers: safe paths --------------------

def _safe_join(base, *paths):
    """Safely join paths, preventing path traversal attacks."""
    base = os.path.abspath(base)
    final = os.path.abspath(os.path.join(base, *paths))
    if not final.startswith(base + os.sep) and final != base:
        raise IOError(f"Unsafe path detected: {final}")
    return final

def _walk_traversable(node, prefix=""):
    """Yield (relative path, Traversable) for every file below an importlib.resources node."""
    for child in sorted(node.iterdir(), key=lambda c: c.name):
        relative = f"{prefix}{child.name}"
        if child.name == "__pycache__":
            continue
        if child.is_dir():
            yield from _walk_traversable(child, relative + "/")
        else:
            yield relative, child

# -------------------- Packaged resources --------------------

def extract_resources(root, dest_dir, include="*", strip_prefix="", mode=0o755, log_each=True):
    """Copy packaged files whose name matches ``include`` into ``dest_dir``.

    ``strip_prefix`` is removed from each relative path. Files are visited in
    name order and the first one wins when two end up with the same name.
    Directories are only created for files that are written. Existing files
    are overwritten.
    """
    os.makedirs(dest_dir, exist_ok=True)
    written = {}
    for relative, resource in _walk_traversable(root):
        if not fnmatch.fnmatch(os.path.basename(relative), include):
            continue
        if strip_prefix and relative.startswith(strip_prefix):
            relative = relative[len(strip_prefix):]
        relative = relative.lstrip("/")
        if relative in written:
            logger.debug(f"Skipping duplicate resource {relative}")
            continue
        target_path = _safe_join(dest_dir, relative)
        os.makedirs(os.path.dirname(target_path), exist_ok=True)
        if log_each:
            logger.step_info(f"extracting: {relative}", indent=2)
        with open(target_path, "wb") as out:
            out.write(resource.read_bytes())
        os.chmod(target_path, mode)
        written[relative] = target_path
    return list(written.values())

# -------------------- Build outputs --------------------

def copy_matching(src_dir, dest_dir, patterns):
    """Copy files below ``src_dir`` matching any glob in ``patterns``, keeping relative paths."""
    src = Path(src_dir)
    os.makedirs(dest_dir, exist_ok=True)
    if not src.is_dir():
        logger.warning(f"Nothing to copy: {src_dir} does not exist")
        return []

    copied = []
    for pattern in patterns:
        for path in sorted(src.glob(pattern)):
            if not path.is_file():
                continue
            relative = path.relative_to(src).as_posix()
            target_path = _safe_join(dest_dir, relative)
            if target_path in copied:
                continue
            os.makedirs(os.path.dirname(target_path), exist_ok=True)
            shutil.copy2(path, target_path)
            logger.info(f"  - Copied {relative} to {dest_dir}")
            copied.append(target_path)
    return copied
