"""
Anchor extraction from crawled pages.
"""

import logging
from typing import List

from bs4 import BeautifulSoup

from .errors import NoContentFoundError


class AnchorExtractor:
    """
    Extracts the raw href of every anchor inside a page's main content area.
    """

    def __init__(self, content_selector: str = "#bodyContent", features: str = 'lxml'):
        self.content_selector = content_selector
        self.features = features
        self.logger = logging.getLogger(__name__)

    def extract_anchors(self, html_content: str, url: str = "") -> List[str]:
        """
        Return the href values found in the main content area, in page order.

        Raises:
            NoContentFoundError: the page has no element matching the
                content selector
        """
        soup = BeautifulSoup(html_content, self.features)

        content_element = soup.select_one(self.content_selector)
        if content_element is None:
            raise NoContentFoundError(url)

        anchors = [
            link['href']
            for link in content_element.find_all('a', href=True)
        ]

        self.logger.debug(f"Found {len(anchors)} anchors in {url or 'page'}")
        return anchors
