import asyncio

import httpx

from filevault.config import Settings
from filevault.logging_config import get_logger

logger = get_logger(__name__)


class MFTTransfer:
    """
    Best-effort copy of each envelope to the managed file transfer endpoint.

    send() schedules the POST and returns immediately. The outcome never
    reaches the caller: non-2xx statuses and network errors are logged
    and dropped, and nothing is retried.
    """

    def __init__(self, settings: Settings, client: httpx.AsyncClient | None = None):
        self.url = settings.mft_url
        self.basic_auth = settings.mft_basic_auth
        self.timeout = settings.mft_timeout
        self.client = client or httpx.AsyncClient(timeout=settings.mft_timeout)
        self._tasks: set[asyncio.Task] = set()

    @property
    def enabled(self) -> bool:
        return bool(self.url)

    def send(self, filename: str, data: bytes) -> None:
        if not self.enabled:
            logger.debug(f"MFT_URL not set, skipping transfer of {filename}")
            return

        logger.info(f"Sending encrypted file {filename} to MFT (fire & forget)")
        task = asyncio.create_task(self._post(filename, data))
        # event loop only keeps weak references to tasks
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _post(self, filename: str, data: bytes) -> None:
        headers = {}
        if self.basic_auth:
            headers["Authorization"] = f"Basic {self.basic_auth}"

        try:
            # bounds the whole request, not each connect/read/write phase
            response = await asyncio.wait_for(
                self.client.post(
                    self.url,
                    files={"file": (filename, data, "application/octet-stream")},
                    headers=headers
                ),
                self.timeout
            )
            if response.is_success:
                logger.info(f"MFT accepted {filename} [status={response.status_code}]")
            else:
                logger.warning(f"MFT returned status {response.status_code} for {filename}, ignored")
        except asyncio.TimeoutError:
            logger.warning(f"MFT upload of {filename} timed out after {self.timeout}s, ignored")
        except Exception as e:
            logger.warning(f"MFT upload error ignored for {filename}: {e}")

    async def drain(self, timeout: float | None = None) -> None:
        """Wait up to timeout seconds for in-flight transfers."""
        if self._tasks:
            await asyncio.wait(set(self._tasks), timeout=timeout)

    async def aclose(self, timeout: float = 5.0) -> None:
        await self.drain(timeout)
        for task in list(self._tasks):
            task.cancel()
        await self.client.aclose()
