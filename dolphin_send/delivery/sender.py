"""Delivers messages to the receiving server over HTTP."""

from typing import Optional

import httpx

from ..events.base import MinecraftMessage
from ..events.pipeline import MessagePipeline
from ..logger import log_exception, logger


class MessageSender:
    """POSTs each message as JSON to the receiving server.

    Failed deliveries are logged and dropped; there are no retries.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize message sender.

        Args:
            url: Address of the receiving server, e.g. http://localhost:5000
            timeout: Request timeout in seconds
            client: HTTP client to use instead of creating one
        """
        self.url = url
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def __aenter__(self) -> "MessageSender":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    @log_exception("Unexpected error delivering message", default_return=False)
    async def send(self, message: MinecraftMessage) -> bool:
        """Deliver one message.

        Returns:
            True if the server answered, whatever the status code
        """
        logger.debug(f"Sending a message from Minecraft: {message!r}")

        try:
            body = message.to_json()
        except (TypeError, ValueError) as e:
            logger.error(f"Error building JSON body from a message: {e}")
            return False

        try:
            response = await self._client.post(
                self.url,
                content=body,
                headers={"Content-Type": "application/json"},
            )
        except httpx.HTTPError as e:
            logger.error(f"Error sending HTTP POST to {self.url}: {e}")
            return False

        logger.debug(f"POST response: {response.status_code}")
        return True

    async def run(self, pipeline: MessagePipeline) -> None:
        """Deliver messages until the pipeline is closed."""
        async for message in pipeline:
            await self.send(message)
        logger.debug("Message sender finished")

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
