"""
File system traversal: walk directories and collect Go source files.

This module finds the .go files a run should analyze. Like the go tool, it
skips directories named testdata or vendor and directories whose names start
with "." or "_". Test files (*_test.go) are included unless asked otherwise.

Typical usage:
    from pathlib import Path
    from nilseeker.traversal import find_go_files

    files = find_go_files(Path("./my_module"))
    files = find_go_files(Path("./my_module"), include_tests=False)
"""

import logging
from pathlib import Path
from typing import Optional, Set

logger = logging.getLogger(__name__)

# Default directories to ignore during traversal
DEFAULT_IGNORE_DIRS: Set[str] = {
    # Ignored by the go tool itself
    "testdata",
    "vendor",

    # Version control
    ".git",
    ".svn",
    ".hg",

    # IDE and editor directories
    ".vscode",
    ".idea",

    # JavaScript tooling that sometimes sits next to Go modules
    "node_modules",

    # Cache directories
    "__pycache__",
    ".cache",
}


def is_go_file(path: Path) -> bool:
    """
    Check if a file is a Go source file (.go extension).

    Examples:
        >>> is_go_file(Path("main.go"))
        True
        >>> is_go_file(Path("go.mod"))
        False
    """
    return path.suffix == ".go"


def is_test_file(path: Path) -> bool:
    """
    Check if a file is a Go test file (*_test.go).

    Examples:
        >>> is_test_file(Path("server_test.go"))
        True
        >>> is_test_file(Path("server.go"))
        False
    """
    return is_go_file(path) and path.name.endswith("_test.go")


def should_ignore_directory(dir_path: Path, ignore_dirs: Set[str]) -> bool:
    """
    Check if a directory should be ignored during traversal.

    Only the directory name is checked. Names starting with "." or "_" are
    always ignored, as the go tool does.

    Examples:
        >>> should_ignore_directory(Path("vendor"), {"vendor"})
        True
        >>> should_ignore_directory(Path("_examples"), set())
        True
        >>> should_ignore_directory(Path("internal"), {"vendor"})
        False
    """
    name = dir_path.name
    if name.startswith(".") or name.startswith("_"):
        return True
    return name in ignore_dirs


def find_go_files(
    root: Path,
    include_tests: bool = True,
    ignore_dirs: Optional[Set[str]] = None,
) -> list[Path]:
    """
    Recursively find all Go source files in a directory tree.

    Args:
        root: Root directory to start traversal from.
        include_tests: If False, *_test.go files are skipped.
        ignore_dirs: Set of directory names to skip. If None, uses DEFAULT_IGNORE_DIRS.

    Returns:
        Sorted list of matching .go files.

    Raises:
        FileNotFoundError: If the root directory does not exist.
        NotADirectoryError: If root is not a directory.

    Notes:
        Symbolic links are never followed, so link cycles cannot loop.
        Permission errors on subdirectories are logged but do not stop traversal.
    """
    if ignore_dirs is None:
        ignore_dirs = DEFAULT_IGNORE_DIRS

    root = root.resolve()

    if not root.exists():
        logger.error("Root directory does not exist: %s", root)
        raise FileNotFoundError(f"Root directory does not exist: {root}")

    if not root.is_dir():
        logger.error("Root path is not a directory: %s", root)
        raise NotADirectoryError(f"Root path is not a directory: {root}")

    logger.info("Starting traversal from: %s", root)
    logger.debug(
        "Traversal config: include_tests=%s, ignore_dirs=%s",
        include_tests,
        ignore_dirs,
    )

    collected_files: list[Path] = []

    def _walk_directory(current_dir: Path) -> None:
        """Recursive helper to walk directory tree."""
        try:
            for entry in current_dir.iterdir():
                if entry.is_symlink():
                    logger.debug("Skipping symlink: %s", entry)
                    continue

                if entry.is_dir():
                    if should_ignore_directory(entry, ignore_dirs):
                        logger.debug("Ignoring directory: %s", entry)
                        continue
                    _walk_directory(entry)

                elif entry.is_file() and is_go_file(entry):
                    if not include_tests and is_test_file(entry):
                        logger.debug("Skipping test file: %s", entry)
                        continue

                    logger.debug("Found source file: %s", entry)
                    collected_files.append(entry)

        except PermissionError as e:
            logger.warning("Permission denied accessing directory %s: %s", current_dir, e)
        except OSError as e:
            logger.warning("Error accessing directory %s: %s", current_dir, e)

    _walk_directory(root)

    collected_files.sort()

    logger.info(
        "Traversal complete: found %d source file(s) in %s",
        len(collected_files),
        root,
    )

    return collected_files
