"""
HTTP fetching.

Shared GET helper used by the feed parser and the content extractor.
"""

import httpx

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Safari/605.1.15"
)

FEED_ACCEPT = (
    "application/rss+xml,application/atom+xml,application/feed+json,"
    "application/json,application/xml;q=0.9,text/xml;q=0.9,text/html;q=0.8,*/*;q=0.7"
)

HTML_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"

DEFAULT_TIMEOUT = 30.0


async def fetch(
    url: str,
    *,
    accept: str,
    client: httpx.AsyncClient | None = None,
    user_agent: str = DEFAULT_USER_AGENT,
    timeout: float = DEFAULT_TIMEOUT,
) -> httpx.Response:
    """
    Perform a single GET request.

    Args:
        url: Absolute URL to fetch.
        accept: Value of the Accept header.
        client: Optional client to reuse; a short-lived one is created otherwise.
        user_agent: Value of the User-Agent header.
        timeout: Request timeout in seconds.

    Returns:
        The response, guaranteed to have a 2xx status.

    Raises:
        httpx.HTTPError: On transport failure or a non-2xx status.
    """
    headers = {"User-Agent": user_agent, "Accept": accept}

    if client is not None:
        response = await client.get(url, headers=headers)
    else:
        async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as owned:
            response = await owned.get(url, headers=headers)

    if not 200 <= response.status_code <= 299:
        raise httpx.HTTPStatusError(
            f"Invalid response status {response.status_code} for {url}",
            request=response.request,
            response=response,
        )

    return response
