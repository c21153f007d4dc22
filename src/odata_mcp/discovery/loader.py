"""
Metadata document loading.

A namespace's $metadata document comes from inline configuration text, a
file on disk, or a URL fetched through an injected coroutine. The router
itself ships no HTTP client; hosts that serve remote services pass one in.
"""
import asyncio
import logging
from pathlib import Path
from typing import Awaitable, Callable, Optional, Union

from odata_mcp.core.config import NamespaceConfig
from odata_mcp.core.errors import ConfigurationError, UpstreamError
from odata_mcp.core.logging import log_with_metadata


logger = logging.getLogger(__name__)


# Documents stay bytes when read raw so the XML declaration picks the encoding
MetadataDocument = Union[str, bytes]

MetadataFetcher = Callable[[str], Awaitable[MetadataDocument]]

_REMOTE_SCHEMES = ('http://', 'https://')


def is_remote(location: str) -> bool:
    return location.lower().startswith(_REMOTE_SCHEMES)


class MetadataLoader:
    """Loads metadata documents for namespaces.

    Attributes:
        fetch: Optional coroutine function returning the document at a URL
        timeout: Seconds to wait for a remote fetch
    """

    def __init__(self, fetch: Optional[MetadataFetcher] = None, timeout: float = 30.0):
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        self.fetch = fetch
        self.timeout = timeout

    async def load(self, namespace: NamespaceConfig) -> MetadataDocument:
        """
        Return the metadata document for a namespace.

        Args:
            namespace: Namespace configuration

        Returns:
            Inline text as configured; file contents as raw bytes; remote
            documents as the fetcher returns them

        Raises:
            ConfigurationError: If the file cannot be read or a URL is
                configured without a fetcher
            UpstreamError: If a remote fetch fails or times out
        """
        if namespace.metadata_text:
            return namespace.metadata_text

        location = namespace.metadata or ''
        if is_remote(location):
            return await self._load_remote(location)
        return await self._load_file(location)

    async def _load_file(self, location: str) -> bytes:
        path = Path(location)
        try:
            document = await asyncio.to_thread(path.read_bytes)
        except OSError as e:
            raise ConfigurationError(
                f"Failed to read metadata file: {e}",
                data={'path': str(path)}
            )
        log_with_metadata(
            logger, logging.DEBUG, "Loaded metadata file",
            {'path': str(path), 'size': len(document)}
        )
        return document

    async def _load_remote(self, url: str) -> MetadataDocument:
        if self.fetch is None:
            raise ConfigurationError(
                f"Metadata URL '{url}' configured but no fetcher is available",
                data={'url': url}
            )
        try:
            text = await asyncio.wait_for(self.fetch(url), timeout=self.timeout)
        except asyncio.TimeoutError:
            raise UpstreamError(
                f"Metadata fetch timed out after {self.timeout}s",
                data={'url': url}
            )
        except UpstreamError:
            raise
        except Exception as e:
            logger.error(f"Metadata fetch from '{url}' failed: {e}", exc_info=True)
            raise UpstreamError(
                f"Metadata fetch failed: {e}",
                data={'url': url, 'type': type(e).__name__}
            )
        log_with_metadata(
            logger, logging.DEBUG, "Fetched remote metadata",
            {'url': url, 'size': len(text)}
        )
        return text
