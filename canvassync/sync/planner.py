"""
Download planning for Canvas Sync.

Determines which files of a course tree need to be downloaded by comparing
the tree with the local directory.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, List, Tuple

from ..api.models import File
from ..core.files import StatFunc, needs_transfer, stat_or_none
from ..core.formatting import sanitize_filename
from ..errors import StructureError
from .tree import CourseTree, TreeFolder


@dataclass(frozen=True)
class FileToSync:
    """A remote file and the local path it should be written to."""
    file: File
    path: Path


def course_directory(directory: Path, tree: CourseTree) -> Path:
    """Local directory a course is mirrored into."""
    return directory / sanitize_filename(tree.course.name)


def _with_id(name: str, item_id: int, is_file: bool) -> str:
    if is_file:
        stem, ext = os.path.splitext(name)
        return f"{stem} ({item_id}){ext}"
    return f"{name} ({item_id})"


def local_names(node: TreeFolder) -> Tuple[Dict[int, str], Dict[int, str]]:
    """
    Local names of a folder's subfolders and files, keyed by Canvas id.

    Names are sanitized, so different remote names can end up equal (and on
    case-insensitive filesystems, equal ignoring case). Within each such
    group the entry with the lowest id keeps the plain name, subfolders before
    files; the others get their id appended before the extension. The result
    only depends on the tree, so every run picks the same paths.

    Returns:
        Tuple of (folder id -> name, file id -> name)

    Raises:
        StructureError: An id-suffixed name still collides with another entry
    """
    entries: List[Tuple[int, int, str]] = []  # (kind, id, sanitized name), folders are kind 0
    entries.extend((0, child.id, sanitize_filename(child.name)) for child in node.folders)
    entries.extend((1, file.id, sanitize_filename(file.display_name)) for file in node.files)
    entries.sort()

    taken = set()
    renamed = []
    names: Tuple[Dict[int, str], Dict[int, str]] = ({}, {})
    for kind, item_id, name in entries:
        key = name.casefold()
        if key in taken:
            renamed.append((kind, item_id, name))
        else:
            taken.add(key)
            names[kind][item_id] = name

    for kind, item_id, name in renamed:
        unique = _with_id(name, item_id, is_file=kind == 1)
        if unique.casefold() in taken:
            raise StructureError(f"{node.folder.full_name}: cannot find a unique local name for {name!r}")
        taken.add(unique.casefold())
        names[kind][item_id] = unique

    return names


def files_to_sync(tree: CourseTree, directory: Path, stat: StatFunc = os.stat) -> Iterator[FileToSync]:
    """
    Yield the files of tree that are missing or stale under directory.

    A file is stale when its local size or modification time differs from the
    remote one. Each folder is probed once; once a folder is known to be
    missing, nothing below it is probed and all of its files are yielded.

    Args:
        tree: Course tree to compare
        directory: Root sync directory (the course gets its own subdirectory)
        stat: os.stat replacement, for tests

    Raises:
        OSError: A probe failed for any reason other than "does not exist"
        StructureError: Two entries of a folder cannot get distinct local names
    """
    root_path = course_directory(directory, tree) / sanitize_filename(tree.root.name)
    yield from _plan_folder(tree.root, root_path, False, stat)


def _plan_folder(node: TreeFolder, path: Path, absent: bool, stat: StatFunc) -> Iterator[FileToSync]:
    if not absent:
        absent = stat_or_none(path, stat) is None

    folder_names, file_names = local_names(node)

    for file in node.files:
        file_path = path / file_names[file.id]
        if absent or needs_transfer(stat_or_none(file_path, stat), file.size, file.modified_ns):
            yield FileToSync(file=file, path=file_path)

    for child in node.folders:
        yield from _plan_folder(child, path / folder_names[child.id], absent, stat)
