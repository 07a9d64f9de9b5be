import re
import logging
from typing import List, Optional
from urllib.parse import urlparse
import httpx
import trafilatura
from bs4 import BeautifulSoup
from newspaper import Article
from app.schemas.analysis import ExtractedArticle

logger = logging.getLogger(__name__)

USER_AGENT = "Mozilla/5.0 (compatible; BiasTracker/1.0; +https://github.com/)"


def _normalize_whitespace(text: str) -> str:
    """Helper function for normalizing whitespace in the text.

    Args:
        text (str): The text to normalize.

    Returns:
        str: The normalized text.
    """
    if not text:
        return ""

    text = text.replace("“", '"').replace("”", '"').replace("’", "'")
    return re.sub(r"\s+", " ", text).strip()


def get_domain(url: str) -> str:
    try:
        parsed = urlparse(url)
        domain = parsed.netloc

        if not domain:
            raise ValueError("No domain found in the URL")
        if domain.startswith("www."):
            domain = domain[4:]

        return domain
    except Exception as e:
        logger.error("Failed to extract domain from URL %s: %s", url, e)
        raise ValueError(f"Domain extraction error: {url}")


def get_paragraphs(html: str) -> List[str]:
    """Extracts the main text paragraphs from article HTML using trafilatura.

    Args:
        html (str): The HTML content of the article.

    Returns:
        List[str]: A list of extracted paragraphs, empty when nothing was found.
    """
    tei = trafilatura.extract(
        html,
        output_format="xml",
        include_comments=False,
        include_images=False,
        include_tables=False,
        with_metadata=False,
    )
    if not tei:
        return []

    soup = BeautifulSoup(tei, "xml")
    paragraphs = [_normalize_whitespace(p.get_text(" ", strip=True)) for p in soup.find_all("p")]
    return [p for p in paragraphs if p]


class ContentExtractor:
    """Fetches a URL and returns the cleaned article, or None when that fails."""

    def __init__(self, client: httpx.AsyncClient, timeout: float = 20.0):
        self.client = client
        self.timeout = timeout

    async def fetch_html(self, url: str) -> str:
        response = await self.client.get(
            url,
            headers={"User-Agent": USER_AGENT},
            follow_redirects=True,
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response.text

    def parse(self, url: str, html: str) -> Optional[ExtractedArticle]:
        article = Article(url)
        article.download(input_html=html)
        article.parse()

        paragraphs = get_paragraphs(html)
        content = "\n\n".join(paragraphs) if paragraphs else (article.text or "").strip()
        if not content:
            logger.warning("No article text extracted from %s", url)
            return None

        return ExtractedArticle(
            url=url,
            content=content,
            title=_normalize_whitespace(article.title) or None,
            description=_normalize_whitespace(article.meta_description) or None,
            image_url=article.top_image or None,
            source=get_domain(url),
        )

    async def extract(self, url: str) -> Optional[ExtractedArticle]:
        try:
            html = await self.fetch_html(url)
            result = self.parse(url, html)
            if result:
                logger.info("Successfully extracted article from %s (%d chars)", url, len(result.content))
            return result
        except httpx.HTTPStatusError as e:
            logger.error(f"HTTP error {e.response.status_code} fetching {url}")
            return None
        except httpx.RequestError as e:
            logger.error(f"Network error fetching {url}: {e}")
            return None
        except Exception as e:
            logger.exception("Error extracting article from %s: %s", url, e)
            return None

    async def fetch_content(self, url: str) -> Optional[str]:
        article = await self.extract(url)
        return article.content if article else None
