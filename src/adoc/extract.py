"""Structured content extraction from documentation pages."""

from dataclasses import dataclass, field

from selectolax.parser import HTMLParser, Node

from .urls import resolve_href

CONTENT_SELECTORS = ("article", "main", "noscript", "body")
STRIPPED_TAGS = ["script", "style", "template", "svg"]


@dataclass
class ParsedPage:
    """Title, readable text and outbound links of one page."""
    title: str
    content: str
    links: list[str] = field(default_factory=list)


def _squash(text: str) -> str:
    return " ".join(text.split())


class Extractor:
    """Extract documentation content from HTML using CSS selectors."""

    def __init__(self, html: str, base_url: str):
        self.html = html
        self.tree = HTMLParser(html)
        self.base_url = base_url

    def _node_text(self, node: Node | None) -> str:
        if node is None:
            return ""
        return _squash(node.text(separator=" "))

    def get_title(self) -> str:
        """First <h1>, falling back to the document <title>."""
        title = self._node_text(self.tree.css_first("h1"))
        if not title:
            title = self._node_text(self.tree.css_first("title"))
        return title

    def get_content(self) -> str:
        """Visible text of the main documentation container."""
        # Link extraction needs the raw tree, so strip a separate copy
        tree = HTMLParser(self.html)
        tree.strip_tags(STRIPPED_TAGS)
        for selector in CONTENT_SELECTORS:
            text = self._node_text(tree.css_first(selector))
            if text:
                return text
        return ""

    def get_links(self) -> list[str]:
        """All http(s) links, resolved, normalized and de-duplicated in page order."""
        links: dict[str, None] = {}
        for node in self.tree.css("a[href]"):
            url = resolve_href(node.attributes.get("href") or "", self.base_url)
            if url:
                links.setdefault(url)
        return list(links)


def extract_page(html: str, base_url: str) -> ParsedPage:
    """Parse a fetched page into title, content and outbound links."""
    extractor = Extractor(html, base_url)
    return ParsedPage(
        title=extractor.get_title(),
        content=extractor.get_content(),
        links=extractor.get_links(),
    )
