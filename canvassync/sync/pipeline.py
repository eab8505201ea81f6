"""
Sync orchestration for Canvas Sync.

Wires the stages together, each running concurrently and connected by
channels:

    list courses -> build course trees -> plan downloads -> downloader pool

All stages share one task scope: the first failure anywhere cancels the rest
and is raised once every stage has unwound. Cancelling the calling task has
the same effect.
"""

import logging
from pathlib import Path
from typing import Iterable, List, Optional

from ..api.models import Course
from ..core.channel import Channel
from ..core.constants import DEFAULT_DOWNLOAD_WORKERS
from ..core.scope import TaskScope
from .downloader import SyncStats, run_downloaders
from .enumerator import build_course_tree, list_courses
from .planner import FileToSync, files_to_sync
from .tree import CourseTree

logger = logging.getLogger(__name__)


def should_sync(course: Course, ignored_courses: Iterable[int]) -> bool:
    """Check if a course is neither ignored nor closed off by Canvas."""
    if course.id in ignored_courses:
        logger.debug("Skipping ignored course %s (%s)", course.id, course.name)
        return False
    if course.access_restricted:
        logger.debug("Skipping access-restricted course %s", course.id)
        return False
    return True


async def build_trees(
    client,
    courses: Channel[List[Course]],
    trees: Channel[CourseTree],
    ignored_courses: Iterable[int] = (),
):
    """Build a tree for every course received on courses, concurrently; close trees when done."""
    ignored = set(ignored_courses)
    scope = TaskScope(name="build trees")

    async def build(course: Course):
        tree = await build_course_tree(client, course)
        await trees.send(tree)

    async def dispatch():
        async for batch in courses:
            for course in batch:
                if should_sync(course, ignored):
                    scope.spawn(build(course), name=f"build {course.id}")

    scope.spawn(dispatch(), name="dispatch courses")
    await scope.wait()
    await trees.close()


async def plan_trees(trees: Channel[CourseTree], directory: Path, out: Channel[FileToSync]):
    """Send the files to sync of every tree received on trees to out; close out when done."""
    scope = TaskScope(name="plan trees")

    async def plan(tree: CourseTree):
        for item in files_to_sync(tree, directory):
            await out.send(item)

    async def dispatch():
        async for tree in trees:
            scope.spawn(plan(tree), name=f"plan {tree.course.id}")

    scope.spawn(dispatch(), name="dispatch trees")
    await scope.wait()
    await out.close()


async def sync_courses(
    client,
    directory: Path,
    ignored_courses: Iterable[int] = (),
    stats: Optional[SyncStats] = None,
    progress=None,
    workers: int = DEFAULT_DOWNLOAD_WORKERS,
) -> SyncStats:
    """
    Mirror every course the client can see into directory.

    Args:
        client: CanvasClient (or anything with the same listing/download methods)
        directory: Root sync directory
        ignored_courses: Course ids to skip
        stats: Totals to update; a fresh SyncStats when None
        progress: Optional tracker notified of each completed download
        workers: Number of concurrent downloads

    Returns:
        The run's totals
    """
    if stats is None:
        stats = SyncStats()

    courses: Channel[List[Course]] = Channel()
    trees: Channel[CourseTree] = Channel()
    pending: Channel[FileToSync] = Channel()

    scope = TaskScope(name="sync")
    scope.spawn(list_courses(client, courses), name="list courses")
    scope.spawn(build_trees(client, courses, trees, ignored_courses), name="build trees")
    scope.spawn(plan_trees(trees, Path(directory), pending), name="plan trees")
    scope.spawn(run_downloaders(client, pending, stats, progress, workers), name="download")
    await scope.wait()

    logger.debug("Sync finished: %d files, %d bytes", stats.files_synced, stats.bytes_transferred)
    return stats
