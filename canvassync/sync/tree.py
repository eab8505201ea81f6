"""
Course tree assembly.

Canvas returns the folders of a course as a flat, unordered list, and the
files of each folder separately. The assembler collects both into one tree
rooted at the course's root folder, and refuses anything that does not form
exactly one such tree.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from ..api.models import Course, File, Folder
from ..core.channel import Channel
from ..core.scope import TaskScope
from ..errors import StructureError


@dataclass
class TreeFolder:
    """A folder with its child folders and files."""
    folder: Folder
    folders: List["TreeFolder"] = field(default_factory=list)
    files: List[File] = field(default_factory=list)

    @property
    def id(self) -> int:
        return self.folder.id

    @property
    def name(self) -> str:
        return self.folder.name


@dataclass
class CourseTree:
    """A course and its folder hierarchy. Read-only once built."""
    course: Course
    root: TreeFolder

    def walk(self) -> Iterator[Tuple[TreeFolder, Tuple[str, ...]]]:
        """Depth-first (pre-order) walk yielding (folder, names from root to folder)."""
        stack = [(self.root, (self.root.name,))]
        while stack:
            node, names = stack.pop()
            yield node, names
            for child in reversed(node.folders):
                stack.append((child, names + (child.name,)))

    def folders(self) -> Iterator[Folder]:
        for node, _ in self.walk():
            yield node.folder

    def files(self) -> Iterator[File]:
        for node, _ in self.walk():
            yield from node.files


class TreeAssembler:
    """
    Builds a CourseTree from folder and file batches arriving in any order.

    Folders are registered as they arrive and linked to their parents in one
    pass once the folder listing is complete (link()). Files are attached as
    soon as their folder is known; files that arrive before their folder are
    held until link().
    """

    def __init__(self, course: Course):
        self.course = course
        self._folders: Dict[int, TreeFolder] = {}
        self._pending_files: List[File] = []
        self._root: Optional[TreeFolder] = None
        self._linked = False

    @property
    def linked(self) -> bool:
        return self._linked

    def add_folders(self, folders: Iterable[Folder]) -> List[int]:
        """
        Register folders.

        Returns:
            Ids of the registered folders that declare files, in arrival order
        """
        if self._linked:
            raise StructureError(f"{self.course.name}: folder received after the folder listing completed")

        with_files = []
        for folder in folders:
            if folder.id in self._folders:
                raise StructureError(f"{self.course.name}: folder {folder.id} listed twice")
            self._folders[folder.id] = TreeFolder(folder)
            if folder.files_count > 0:
                with_files.append(folder.id)
        return with_files

    def add_files(self, files: Iterable[File]):
        """Attach files to their folders."""
        for file in files:
            node = self._folders.get(file.folder_id)
            if node is not None:
                node.files.append(file)
            elif self._linked:
                raise StructureError(
                    f"{self.course.name}: could not find folder {file.folder_id} for file {file.id}"
                )
            else:
                self._pending_files.append(file)

    def link(self):
        """Link every folder to its parent. Call once, after the last folder batch."""
        if self._linked:
            return

        root = None
        for node in self._folders.values():
            parent_id = node.folder.parent_id
            if parent_id == 0:
                if root is not None:
                    raise StructureError(
                        f"{self.course.name}: two root folders ({root.id} and {node.id})"
                    )
                root = node
                continue

            parent = self._folders.get(parent_id)
            if parent is None:
                raise StructureError(
                    f"{self.course.name}: could not find parent folder {parent_id} of folder {node.id}"
                )
            parent.folders.append(node)

        if root is None:
            raise StructureError(f"{self.course.name}: no root folder")

        # Parent cycles pass the lookup above but are never reached from the root
        reachable = 0
        stack = [root]
        while stack:
            node = stack.pop()
            reachable += 1
            stack.extend(node.folders)
        if reachable != len(self._folders):
            raise StructureError(
                f"{self.course.name}: {len(self._folders) - reachable} folders not reachable from the root folder"
            )

        self._root = root
        self._linked = True

        pending, self._pending_files = self._pending_files, []
        self.add_files(pending)

    def finish(self) -> CourseTree:
        """Return the assembled tree. The id lookup is released."""
        self.link()
        tree = CourseTree(course=self.course, root=self._root)
        self._folders = {}
        return tree


def build_tree(course: Course, folders: Iterable[Folder], files: Iterable[File]) -> CourseTree:
    """Build a course tree from complete, already collected listings."""
    assembler = TreeAssembler(course)
    assembler.add_folders(folders)
    assembler.link()
    assembler.add_files(files)
    return assembler.finish()


async def assemble_tree(
    assembler: TreeAssembler,
    folders: Channel[List[Folder]],
    files: Channel[List[File]],
    folder_ids: Channel[int],
):
    """
    Feed an assembler from the folder and file listing channels.

    Ids of folders that declare files are forwarded to folder_ids as soon as
    the folder arrives, so file listings start while folders are still being
    listed. When the folder listing closes, the folders are linked and
    folder_ids is closed. Returns once the file listing closes.
    """
    scope = TaskScope(name=f"assemble {assembler.course.id}")

    async def consume_folders():
        async for batch in folders:
            for folder_id in assembler.add_folders(batch):
                await folder_ids.send(folder_id)
        assembler.link()
        await folder_ids.close()

    async def consume_files():
        async for batch in files:
            assembler.add_files(batch)

    scope.spawn(consume_folders(), name="consume folders")
    scope.spawn(consume_files(), name="consume files")
    await scope.wait()
