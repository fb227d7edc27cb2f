"""
Basic client example using c_http_client.

This example demonstrates plain and TLS requests, an optional CONNECT
proxy, and how each failure stage surfaces as its own exception.

Usage:
    python examples/basic_client.py [URL] [PROXY_URL]
"""

import asyncio
import logging
import sys

from c_http_client import Client, HTTPClientError, ProxyConfig, ProxyError

# Configure logging
logging.basicConfig(
    level=logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


async def fetch(client: Client, url: str) -> None:
    """Fetch a URL and log the outcome."""
    try:
        response = await client.get(url).header("Accept", "text/html").send()
    except ProxyError as e:
        logger.error(f"Proxy refused the tunnel ({e.status_code} {e.reason}): {e}")
        return
    except HTTPClientError as e:
        logger.error(f"{type(e).__name__}: {e}")
        return

    logger.info(response.status_line)
    for name, value in response.headers.items():
        logger.info(f"  {name}: {value}")
    logger.info(f"Body: {len(response.content)} bytes")


async def main() -> None:
    url = sys.argv[1] if len(sys.argv) > 1 else "https://example.org/"
    proxy = ProxyConfig.from_url(sys.argv[2]) if len(sys.argv) > 2 else None

    client = Client(proxy=proxy)
    await fetch(client, url)

    # Sends are independent, so they can run concurrently on one client.
    await asyncio.gather(
        fetch(client, url),
        fetch(client, url),
    )


if __name__ == "__main__":
    asyncio.run(main())
