"""LxmlPageElement implementation wrapping CheckedHtmlElement.

This is the PageElement implementation used by the HTTP fetcher and by the
tests. Pages are parsed with lxml's forgiving HTML parser, so imperfect
markup still yields a usable tree.
"""

from __future__ import annotations

from urllib.parse import urljoin

from lxml import etree
from lxml import html as lxml_html

from sharescraper.common.checked_html import CheckedHtmlElement
from sharescraper.common.exceptions import ScraperAssumptionException
from sharescraper.common.page_element import Link


class LxmlPageElement:
    """Implementation of the PageElement protocol over CheckedHtmlElement.

    Attributes:
        _element: The underlying CheckedHtmlElement.
        _url: The base URL for resolving relative URLs.
    """

    def __init__(self, element: CheckedHtmlElement, url: str = ""):
        self._element = element
        self._url = url
        self._released = False

    @classmethod
    def from_html(cls, content: bytes | str, url: str = "") -> LxmlPageElement:
        """Parse a whole HTML document into a page.

        Raw bytes are passed straight to lxml so it can pick the encoding
        from the document's meta charset.

        Args:
            content: The document source.
            url: URL the document was retrieved from.

        Returns:
            LxmlPageElement for the document's root <html> element.

        Raises:
            ScraperAssumptionException: If lxml cannot build a tree at all
                (for example an empty body).
        """
        try:
            root = lxml_html.document_fromstring(content)
        except (etree.ParserError, etree.ParseError, ValueError) as e:
            raise ScraperAssumptionException(
                f"Failed to parse HTML: {e}",
                request_url=url,
                context={"error": str(e)},
            ) from e
        return cls(CheckedHtmlElement(root, url), url)

    @property
    def url(self) -> str:
        return self._url

    @property
    def released(self) -> bool:
        return self._released

    def _checked(self) -> CheckedHtmlElement:
        if self._released:
            raise RuntimeError(f"Page {self._url} has already been released")
        return self._element

    def query_xpath(
        self,
        selector: str,
        description: str,
        min_count: int = 1,
        max_count: int | None = None,
    ) -> list[LxmlPageElement]:
        """Query elements by XPath selector.

        Raises:
            HTMLStructuralAssumptionException: If count doesn't match expectations.
        """
        checked_elements = self._checked().checked_xpath(
            selector, description, min_count, max_count
        )
        return [LxmlPageElement(elem, self._url) for elem in checked_elements]

    def query_xpath_strings(
        self,
        selector: str,
        description: str,
        min_count: int = 1,
        max_count: int | None = None,
    ) -> list[str]:
        """Query text nodes or attribute values by XPath selector.

        Raises:
            HTMLStructuralAssumptionException: If count doesn't match expectations.
        """
        return self._checked().checked_xpath(
            selector, description, min_count, max_count, type=str
        )

    def text_content(self) -> str:
        return self._checked().text_content()

    def first_child_text(self) -> str | None:
        """Text of the first child node, DOM style.

        lxml keeps an element's leading text on ``.text`` rather than as a
        separate node, so any ``.text``, even whitespace, is the first child.
        Otherwise the first child node is used as it is, comments included.
        """
        elem = self._checked().element
        if elem.text is not None:
            return elem.text
        if len(elem) == 0:
            return None
        first = elem[0]
        # Comments and processing instructions have a non-string tag.
        if isinstance(first.tag, str):
            return first.text_content()
        return first.text

    def get_attribute(self, name: str) -> str | None:
        return self._checked().get(name)

    def find_links(
        self,
        selector: str,
        description: str,
        min_count: int = 1,
        max_count: int | None = None,
    ) -> list[Link]:
        """Find links matching an XPath selector.

        Raises:
            HTMLStructuralAssumptionException: If count doesn't match expectations.
        """
        link_elements = self.query_xpath(
            selector, description, min_count, max_count
        )

        links: list[Link] = []
        for i, elem in enumerate(link_elements):
            href = elem.get_attribute("href")
            if not href:
                continue

            url = urljoin(self._url, href)
            text = elem.text_content().strip()
            # Positional predicate so the selector identifies this one link
            link_selector = f"({selector})[{i + 1}]"

            links.append(Link(url=url, text=text, selector=link_selector))

        return links

    def release(self) -> None:
        """Clear the parsed tree so its memory can be reclaimed."""
        if self._released:
            return
        self._element.element.clear()
        self._released = True
