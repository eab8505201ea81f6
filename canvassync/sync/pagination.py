"""
Paginated listing fetches.

Canvas listings are split into pages linked by a ``Link: <...>; rel="next"``
header. Instead of walking the chain in a loop, every page fetch starts the
fetch of the page after it as a new task, so a long chain never waits on one
request at a time and the scope's completion barrier decides when the
listing is exhausted.
"""

import logging
from typing import Callable, List, TypeVar

from ..core.channel import Channel
from ..core.scope import TaskScope

logger = logging.getLogger(__name__)

T = TypeVar("T")


def spawn_page_fetch(
    scope: TaskScope,
    client,
    url: str,
    parse: Callable[[dict], T],
    out: Channel[List[T]],
):
    """
    Start fetching the listing at url inside scope.

    Each page is sent to out as one batch (empty pages included). Follow-up
    pages are fetched by further tasks in the same scope, so ``scope.wait()``
    covers the whole chain.
    """

    async def worker(page_url: str):
        items, next_url = await client.list_page(page_url, parse)
        if next_url:
            scope.spawn(worker(next_url), name=f"page {next_url}")
        await out.send(items)

    scope.spawn(worker(url), name=f"page {url}")


async def paginate(client, url: str, parse: Callable[[dict], T], out: Channel[List[T]]):
    """
    Send every page of the listing starting at url to out, then close out.

    On failure the remaining fetches are cancelled, out stays open and the
    first error is raised.
    """
    scope = TaskScope(name=f"paginate {url}")
    spawn_page_fetch(scope, client, url, parse, out)
    await scope.wait()
    await out.close()
