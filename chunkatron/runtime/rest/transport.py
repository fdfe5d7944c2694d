"""HTTP implementations of the fetch and chunk list ports."""

from __future__ import annotations

from typing import Any

from ...core.enums import DataFormat, HTTPMethod, RequestEncoding
from ...core.exceptions import InitialRetrievalError
from ..chunking.definitions import Chunk
from .http_client import HTTPClient


class HTTPChunkFetcher:
    """Fetches one chunk per request.

    POST sends ``{"chunk": [ids...]}`` as the JSON body, or ``chunk[]=<id>``
    form pairs with ``RequestEncoding.FORM`` for servers that parse jQuery
    style arrays. GET repeats the ``chunk`` query parameter once per identifier.
    """

    def __init__(
        self,
        client: HTTPClient,
        url: str,
        *,
        method: HTTPMethod = HTTPMethod.POST,
        data_format: DataFormat = DataFormat.JSON,
        encoding: RequestEncoding = RequestEncoding.JSON,
    ) -> None:
        self._client = client
        self.url = url
        self.method = method
        self.data_format = data_format
        self.encoding = encoding

    async def __call__(self, chunk: Chunk) -> Any:
        ids = list(chunk)
        if self.method is HTTPMethod.GET:
            params = [("chunk", str(item)) for item in ids]
            return await self._client.get(self.url, params=params, data_format=self.data_format)
        if self.encoding is RequestEncoding.FORM:
            form = [("chunk[]", str(item)) for item in ids]
            return await self._client.post(self.url, data=form, data_format=self.data_format)
        return await self._client.post(
            self.url, json={"chunk": ids}, data_format=self.data_format
        )


class HTTPChunkListSource:
    """Retrieves the chunk list with a GET request.

    The list is always decoded as JSON and must be an array of arrays.
    """

    def __init__(self, client: HTTPClient, url: str) -> None:
        self._client = client
        self.url = url

    async def __call__(self) -> list[list[Any]]:
        data = await self._client.get(self.url, data_format=DataFormat.JSON)
        if not isinstance(data, list) or not all(isinstance(chunk, list) for chunk in data):
            raise InitialRetrievalError(
                f"Expected a JSON array of chunks from {self.url}, got {type(data).__name__}",
                source=self.url,
            )
        return data
