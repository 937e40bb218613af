"""
URL Harvester Module - Collects anchor links and splits them by origin.

Pure reconnaissance: the result is never positive.
"""

from typing import Dict, Iterable, List
from urllib.parse import urlsplit

from .base_module import ModuleResult, ModuleState


# Root-relative hrefs are resolved against the page origin
EXTRACT_LINKS_JS = """
() => Array.from(document.querySelectorAll('a')).map(link => {
    const href = link.getAttribute('href') || '';
    if (href.startsWith('/') && !href.startsWith('//')) {
        return window.location.origin + href;
    }
    return link.href;
})
"""


def page_origin(url: str) -> str:
    """Return scheme://host[:port] of a URL, without any userinfo"""
    parts = urlsplit(url)
    host = parts.netloc.rpartition("@")[2]
    return f"{parts.scheme}://{host}"


def partition_urls(urls: Iterable[str], origin: str) -> Dict[str, List[str]]:
    """
    Split links into inbound and outbound, keeping document order.

    Absolute links are inbound only when their scheme, host and port match
    the page origin exactly; root-relative paths are always inbound.

    Args:
        urls: Links in document order (duplicates allowed)
        origin: Origin of the page the links were found on

    Returns:
        {"inbound_urls": [...], "outbound_urls": [...]}
    """
    inbound: List[str] = []
    outbound: List[str] = []

    for url in urls:
        if url.startswith("/") or page_origin(url) == origin:
            inbound.append(url)
        else:
            outbound.append(url)

    return {"inbound_urls": inbound, "outbound_urls": outbound}


class UrlHarvesterModule:
    """Link harvester for the current page"""

    NAME = "UrlHarvesterModule"

    def __init__(self, name: str = NAME):
        self.state = ModuleState(name)

    @property
    def name(self) -> str:
        return self.state.name

    @property
    def result(self) -> ModuleResult:
        return self.state.result

    async def run(self, session) -> None:
        try:
            origin = page_origin(session.current_url)
            urls = await session.evaluate(EXTRACT_LINKS_JS)

            harvest = partition_urls(urls or [], origin)
            self.state.logger.info(
                "urls_harvested",
                inbound=len(harvest["inbound_urls"]),
                outbound=len(harvest["outbound_urls"]),
            )
            self.state.record(harvest)

        except Exception as e:
            self.state.logger.error("module_failed", error=str(e), exc_info=True)
