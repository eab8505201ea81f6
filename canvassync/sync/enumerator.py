"""
Enumeration of courses, folders and files.

Each listing is a pagination chain (see pagination.py). Files are listed per
folder, driven by the folder ids the tree assembler forwards while the folder
listing is still running.
"""

import logging
from typing import List

from ..api.models import Course, File, Folder
from ..core.channel import Channel
from ..core.scope import TaskScope
from .pagination import paginate, spawn_page_fetch
from .tree import CourseTree, TreeAssembler, assemble_tree

logger = logging.getLogger(__name__)


async def list_courses(client, out: Channel[List[Course]]):
    """Send every page of the user's courses to out, then close it."""
    await paginate(client, client.courses_url(), Course.from_dict, out)


async def list_folders_in_course(client, course_id: int, out: Channel[List[Folder]]):
    """Send every page of a course's folders to out, then close it."""
    await paginate(client, client.folders_in_course_url(course_id), Folder.from_dict, out)


async def list_files_in_folders(client, folder_ids: Channel[int], out: Channel[List[File]]):
    """
    List the files of every folder id received on folder_ids.

    A pagination chain is started per id as soon as it arrives. out is closed
    once folder_ids is closed and every chain has finished.
    """
    scope = TaskScope(name="list files")

    async def dispatch():
        async for folder_id in folder_ids:
            spawn_page_fetch(scope, client, client.files_in_folder_url(folder_id), File.from_dict, out)

    scope.spawn(dispatch(), name="dispatch folder ids")
    await scope.wait()
    await out.close()


async def build_course_tree(client, course: Course) -> CourseTree:
    """
    Fetch a course's folders and files and assemble them into a tree.

    The folder listing, the file listing and the assembler run concurrently;
    the first one to fail cancels the other two and its error is raised.
    """
    folders: Channel[List[Folder]] = Channel()
    files: Channel[List[File]] = Channel()
    folder_ids: Channel[int] = Channel()
    assembler = TreeAssembler(course)

    scope = TaskScope(name=f"course {course.id}")
    scope.spawn(list_folders_in_course(client, course.id, folders), name="list folders")
    scope.spawn(list_files_in_folders(client, folder_ids, files), name="list files")
    scope.spawn(assemble_tree(assembler, folders, files, folder_ids), name="assemble")
    await scope.wait()

    tree = assembler.finish()
    logger.debug("Built tree for course %s (%s)", course.id, course.name)
    return tree
