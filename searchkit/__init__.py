"""
searchkit - async client library for a hosted search cluster.

Example:
    from searchkit.index import Query, SearchClient

    async with SearchClient(
        appId="APP",
        apiKey="KEY",
        readHosts=["app-dsn.search.example.net"],
        writeHosts=["app.search.example.net"],
    ) as client:
        index = client.getIndex("products")
        index.enableSearchCache()
        content = await index.search(Query(query="shoes"))
"""

__version__ = "0.1.0"
