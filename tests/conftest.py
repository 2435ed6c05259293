import asyncio

import pytest

from app.core.document_store import DocumentStoreError, InMemoryDocumentStore

class FlakyDocumentStore(InMemoryDocumentStore):
    """In-memory store that refuses writes under selected path prefixes"""

    def __init__(self, failing_prefixes=(), error=None):
        super().__init__()
        self.failing_prefixes = tuple(failing_prefixes)
        self.error = error or DocumentStoreError("permission denied")
        self.writes = []

    async def _write(self, path, value, merge):
        if path.startswith(self.failing_prefixes):
            raise self.error
        self.writes.append(path)
        return await super()._write(path, value, merge)

class SlowDocumentStore(InMemoryDocumentStore):
    async def _write(self, path, value, merge):
        await asyncio.sleep(1)
        return await super()._write(path, value, merge)

def run(coro):
    return asyncio.run(coro)

@pytest.fixture
def store():
    return InMemoryDocumentStore()

@pytest.fixture
def hazard_record():
    return {"lat": 11.0175, "lon": 76.3104, "prediction": 1}
