"""
Integration tests: search, indexing and browse flows through the whole stack
(Index → cache → dispatcher → httpx) against an in-process fake cluster.
"""

import asyncio

import httpx
import pytest

from searchkit.dispatch import AllHostsExhaustedError, AttemptOutcome
from searchkit.index import BrowseState, Query


@pytest.mark.asyncio
async def testIdenticalSearchWithinTtlIsServedFromCache(searchClient, fakeCluster):
    """Second identical search within the TTL makes no network attempt."""
    fakeCluster.downHosts.add("read-1.test")
    fakeCluster.reply("POST", "/1/indexes/movies/query", {"hits": [{"objectID": "1"}], "nbHits": 1})
    index = searchClient.getIndex("movies")
    index.enableSearchCache(ttl=120)

    firstCall = index.search(Query(query="alien"))
    first = await firstCall
    secondCall = index.search(Query(query="alien"))
    second = await secondCall

    assert first == second
    assert [request.url.host for request in fakeCluster.requests] == ["read-1.test", "read-2.test"]
    assert [attempt.outcome for attempt in firstCall.attempts] == [
        AttemptOutcome.RETRYABLE_FAILURE,
        AttemptOutcome.SUCCESS,
    ]
    assert secondCall.attempts == []


@pytest.mark.asyncio
async def testWriteFailoverThenWaitTask(searchClient, fakeCluster):
    """Indexing fails over to the second write host, then the task is awaited."""
    fakeCluster.reply("POST", "/1/indexes/movies", {"message": "Unavailable"}, status=503, host="write-1.test")
    fakeCluster.reply("POST", "/1/indexes/movies", {"objectID": "1", "taskID": 17}, host="write-2.test")
    fakeCluster.reply("GET", "/1/indexes/movies/task/17", {"status": "published", "pendingTask": False})
    index = searchClient.getIndex("movies")

    added = await index.addObject({"title": "Alien"})
    task = await index.waitTask(added["taskID"])

    assert added["objectID"] == "1"
    assert task["status"] == "published"
    assert [request.url.host for request in fakeCluster.requestsTo("/1/indexes/movies")] == [
        "write-1.test",
        "write-2.test",
    ]


@pytest.mark.asyncio
async def testClusterDown(searchClient, fakeCluster):
    fakeCluster.downHosts.update({"read-1.test", "read-2.test"})
    received = []

    with pytest.raises(AllHostsExhaustedError) as excInfo:
        await searchClient.getIndex("movies").getSettings(onComplete=lambda c, e: received.append(e))

    assert excInfo.value.lastError.host == "read-2.test"
    assert received == [excInfo.value]


@pytest.mark.asyncio
async def testBrowseTwoPages(searchClient, fakeCluster):
    """Page 1 carries cursor X, page 2 none: two handler calls, then exhausted."""
    fakeCluster.reply("POST", "/1/indexes/movies/browse", {"hits": [1, 2], "cursor": "X"})

    def secondPage(request: httpx.Request) -> httpx.Response:
        assert request.url.params["cursor"] == "X"
        return httpx.Response(200, json={"hits": [3]})

    fakeCluster.route("GET", "/1/indexes/movies/browse", secondPage)
    done = asyncio.Event()
    pages = []

    def onPage(iterator, content, error):
        pages.append((content, error))
        if error is not None or not iterator.hasNext():
            done.set()

    iterator = searchClient.getIndex("movies").browseAll(Query(hitsPerPage=2), onPage)
    await asyncio.wait_for(done.wait(), 1)
    await asyncio.sleep(0.01)

    assert [content["hits"] for content, _ in pages] == [[1, 2], [3]]
    assert iterator.state == BrowseState.EXHAUSTED
    assert len(fakeCluster.requestsTo("/1/indexes/movies/browse")) == 2


@pytest.mark.asyncio
async def testBrowseCancelledDuringSecondPage(searchClient, fakeCluster):
    """Cancelling while page 2 is in flight: no handler call, no third request."""
    fakeCluster.reply("POST", "/1/indexes/movies/browse", {"hits": [1], "cursor": "X"})
    secondPageStarted = asyncio.Event()
    release = asyncio.Event()

    async def slowSecondPage(request: httpx.Request) -> httpx.Response:
        secondPageStarted.set()
        await release.wait()
        return httpx.Response(200, json={"hits": [2], "cursor": "Y"})

    fakeCluster.route("GET", "/1/indexes/movies/browse", slowSecondPage)
    pages = []

    iterator = searchClient.getIndex("movies").browseAll(Query(), lambda it, content, error: pages.append(content))
    await asyncio.wait_for(secondPageStarted.wait(), 1)

    iterator.cancel()
    release.set()
    await asyncio.sleep(0.05)

    assert len(pages) == 1
    assert iterator.state == BrowseState.CANCELLED
    assert iterator.cursor == "X"
    assert len(fakeCluster.requestsTo("/1/indexes/movies/browse")) == 2
