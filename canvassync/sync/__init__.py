"""
Sync operations module.

Handles listing, tree assembly, download planning and downloading.
"""

from .downloader import SyncStats, download_and_write_file, run_downloaders
from .enumerator import build_course_tree, list_courses, list_files_in_folders, list_folders_in_course
from .pagination import paginate, spawn_page_fetch
from .pipeline import sync_courses
from .planner import FileToSync, files_to_sync, local_names
from .tree import CourseTree, TreeAssembler, TreeFolder, assemble_tree, build_tree

__all__ = [
    # Pagination
    "paginate",
    "spawn_page_fetch",
    # Enumeration
    "list_courses",
    "list_folders_in_course",
    "list_files_in_folders",
    "build_course_tree",
    # Tree
    "CourseTree",
    "TreeFolder",
    "TreeAssembler",
    "assemble_tree",
    "build_tree",
    # Planning
    "FileToSync",
    "files_to_sync",
    "local_names",
    # Downloading
    "SyncStats",
    "download_and_write_file",
    "run_downloaders",
    # Orchestration
    "sync_courses",
]
