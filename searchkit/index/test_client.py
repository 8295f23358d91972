"""Tests for SearchClient construction, host reconfiguration and lifecycle."""

import asyncio
import unittest

import httpx

from ..dispatch import ConfigurationError, HostsConfig
from ..dispatch.constants import HEADER_API_KEY, HEADER_APPLICATION_ID
from .client import SearchClient
from .index import Index


class TestSearchClient(unittest.IsolatedAsyncioTestCase):
    """SearchClient wiring, dood!"""

    def setUp(self):
        self.requests = []
        self.httpClient = httpx.AsyncClient(transport=httpx.MockTransport(self._respond))

    async def asyncTearDown(self):
        await self.httpClient.aclose()

    def _respond(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(200, json={"host": request.url.host})

    def _makeClient(self, **kwargs) -> SearchClient:
        params = {
            "readHosts": ["r1", "r2"],
            "writeHosts": ["w1"],
            "httpClient": self.httpClient,
        }
        params.update(kwargs)
        return SearchClient("app", "key", **params)

    def testRequiresCredentials(self):
        with self.assertRaises(ConfigurationError):
            SearchClient("", "key", readHosts=["r"], writeHosts=["w"], httpClient=self.httpClient)
        with self.assertRaises(ConfigurationError):
            SearchClient("app", "", readHosts=["r"], writeHosts=["w"], httpClient=self.httpClient)

    def testRequiresHosts(self):
        with self.assertRaises(ConfigurationError):
            self._makeClient(readHosts="app.example.net")
        with self.assertRaises(ConfigurationError):
            self._makeClient(readHosts=[])
        with self.assertRaises(ConfigurationError):
            self._makeClient(writeHosts=[""])

    def testRejectsInvalidTimeouts(self):
        with self.assertRaises(ConfigurationError):
            self._makeClient(timeout=0)
        with self.assertRaises(ConfigurationError):
            self._makeClient(searchTimeout=-1)

    def testGetIndex(self):
        client = self._makeClient()
        index = client.getIndex("movies")

        self.assertIsInstance(index, Index)
        self.assertIs(index.client, client)
        self.assertEqual(index.indexName, "movies")

    async def testSendsAuthHeaders(self):
        client = self._makeClient()

        await client.getIndex("movies").getSettings()

        self.assertEqual(self.requests[0].headers[HEADER_APPLICATION_ID], "app")
        self.assertEqual(self.requests[0].headers[HEADER_API_KEY], "key")
        self.assertTrue(self.requests[0].headers["User-Agent"].startswith("searchkit/"))

    async def testSetHostsAffectsNewCallsOnly(self):
        client = self._makeClient()
        originalDispatcher = client.dispatcher

        client.setHosts(readHosts=["r9"])

        self.assertIsNot(client.dispatcher, originalDispatcher)
        self.assertEqual(originalDispatcher.hosts.readHosts, ("r1", "r2"))
        self.assertEqual(client.hosts, HostsConfig(("r9",), ("w1",)))

        content = await client.getIndex("movies").getSettings()
        self.assertEqual(content, {"host": "r9"})

    def testSetHostsValidates(self):
        client = self._makeClient()

        with self.assertRaises(ConfigurationError):
            client.setHosts(writeHosts=[])
        with self.assertRaises(ConfigurationError):
            client.setHosts(readHosts="r9.example.net")
        self.assertEqual(client.hosts.writeHosts, ("w1",))

    def testFromConfig(self):
        client = SearchClient.fromConfig(
            {
                "app-id": "app",
                "api-key": "key",
                "read-hosts": ["r1"],
                "write-hosts": ["w1", "w2"],
                "timeout": 10,
                "search-timeout": 2,
                "retry-backoff-factor": 0.25,
            },
            httpClient=self.httpClient,
        )

        self.assertEqual(client.timeout, 10.0)
        self.assertEqual(client.searchTimeout, 2.0)
        self.assertEqual(client.dispatcher.retryBackoffFactor, 0.25)
        self.assertEqual(client.hosts.writeHosts, ("w1", "w2"))

    def testFromConfigMissingKeys(self):
        with self.assertRaises(ConfigurationError):
            SearchClient.fromConfig({"app-id": "app", "read-hosts": ["r"], "write-hosts": ["w"]})
        with self.assertRaises(ConfigurationError):
            SearchClient.fromConfig({"app-id": "app", "api-key": "k", "read-hosts": "r", "write-hosts": ["w"]})
        with self.assertRaises(ConfigurationError):
            SearchClient.fromConfig(
                {"app-id": "app", "api-key": "k", "read-hosts": ["r"], "write-hosts": ["w"], "timeout": "soon"}
            )

    async def testInjectedClientIsNotClosed(self):
        async with self._makeClient():
            pass

        self.assertFalse(self.httpClient.is_closed)

    async def testOwnedClientIsClosed(self):
        client = SearchClient("app", "key", readHosts=["r"], writeHosts=["w"])

        await client.aclose()

        self.assertTrue(client.dispatcher.httpClient.is_closed)

    async def testCallsAreAwaitableConcurrently(self):
        client = self._makeClient()
        index = client.getIndex("movies")

        results = await asyncio.gather(index.getSettings(), index.listUserKeys())

        self.assertEqual(results, [{"host": "r1"}, {"host": "r1"}])


if __name__ == "__main__":
    unittest.main()
