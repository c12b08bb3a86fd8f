"""Fetching and parsing of online documentation pages.

Pages are requested with httpx and reduced to Markdown-flavoured text
with BeautifulSoup: headings, inline code, code blocks and list items
keep a little of their structure, navigation chrome is dropped.
"""

import re
from dataclasses import asdict, dataclass

import httpx
from bs4 import BeautifulSoup

from workspace_tools.utils.config import DocsConfig
from workspace_tools.utils.logger import get_logger

from .sources import DOC_SOURCES, DocumentationSource

logger = get_logger(__name__)

_CHROME_SELECTOR = "nav, .sidebar, .toc, .breadcrumbs"
_CONTENT_TAGS = ["p", "h1", "h2", "h3", "h4", "h5", "h6", "li", "code", "pre"]


class DocsFetchError(Exception):
    """Raised when a documentation page cannot be retrieved."""


@dataclass
class DocsResult:
    """Text of one documentation page."""

    title: str
    content: str
    url: str
    source: str

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


def _render_element(tag_name: str, text: str) -> str:
    if tag_name.startswith("h"):
        return f"\n## {text}\n"
    if tag_name == "code":
        return f"`{text}`"
    if tag_name == "pre":
        return f"\n```\n{text}\n```\n"
    if tag_name == "li":
        return f"- {text}"
    return text


def parse_docs_content(
    html: str, url: str, source_name: str, fallback_chars: int = 2000
) -> DocsResult:
    """Turn a documentation page into a title and plain-text content.

    The title is the first ``h1``, else the ``<title>``, else
    ``"<source> Documentation"``. Content comes from the first
    ``<main>`` element; pages without one fall back to the start of
    the body text.

    Args:
        html: Page markup.
        url: URL the page was fetched from.
        source_name: Display name of the documentation site.
        fallback_chars: Characters of body text used without ``<main>``.

    Returns:
        The parsed page.
    """
    soup = BeautifulSoup(html, "html.parser")

    h1 = soup.find("h1")
    title = h1.get_text().strip() if h1 else ""
    if not title and soup.title:
        title = soup.title.get_text().strip()
    title = title or f"{source_name} Documentation"

    content = ""
    main = soup.find("main")
    if main:
        for chrome in main.select(_CHROME_SELECTOR):
            if not chrome.decomposed:
                chrome.decompose()
        parts = [
            _render_element(el.name, el.get_text().strip())
            for el in main.find_all(_CONTENT_TAGS)
        ]
        content = re.sub(r"\n{3,}", "\n\n", "\n".join(parts))

    if not content:
        body = soup.body or soup
        text = body.get_text().strip()[:fallback_chars]
        content = f"{text}..." if text else ""

    return DocsResult(
        title=title,
        content=content or "No content found",
        url=url,
        source=source_name,
    )


def _contains_any(term: str, *needles: str) -> bool:
    return any(needle in term for needle in needles)


def expand_search_queries(
    term: str, source: DocumentationSource, max_queries: int = 3
) -> list[str]:
    """Pick the page names worth fetching when searching one site for ``term``.

    The term itself always comes first; site-specific guesses follow,
    e.g. ``useEffect`` on React adds the ``hooks`` page and ``effect``.

    Args:
        term: The search term.
        source: Site being searched.
        max_queries: Maximum number of pages to try.

    Returns:
        Distinct queries in the order they should be fetched.
    """
    lower = term.lower()
    queries = [term]

    if source.key == "react":
        if "hook" in lower or lower.startswith("use"):
            queries += ["hooks", re.sub(r"^use", "", term).lower()]
        if "component" in lower:
            queries.append("components")
    elif source.key == "nextjs":
        if _contains_any(lower, "route", "router"):
            queries.append("routing")
        if _contains_any(lower, "data", "fetch"):
            queries.append("data-fetching")
    elif source.key == "tanstack-query":
        if lower.startswith("use") and _contains_any(lower, "query", "mutation"):
            queries.append(term)
        if "key" in lower:
            queries.append("query-keys")
        if "cache" in lower or "caching" in lower:
            queries.append("caching")
        if "mutation" in lower:
            queries.append("mutations")
    elif source.key == "turborepo":
        if "cache" in lower or "caching" in lower:
            queries.append("caching")
        if _contains_any(lower, "task", "script"):
            queries.append("running-tasks")
        if "config" in lower:
            queries.append("configuration")
    elif source.key == "shadcn-ui":
        if _contains_any(lower, "component", "button", "input", "dialog", "card", "dropdown"):
            queries.append(lower)
        if _contains_any(lower, "install", "setup"):
            queries.append("installation")
        if _contains_any(lower, "theme", "dark", "color"):
            queries.append("theming")
        if _contains_any(lower, "monorepo", "workspace"):
            queries.append("turborepo")
    elif source.key == "postgresql":
        if _contains_any(lower, "select", "insert", "update", "delete"):
            queries.append(lower)
        if _contains_any(lower, "index", "table", "constraint"):
            queries.append(lower)
        if _contains_any(lower, "function", "aggregate"):
            queries.append("functions")
    elif source.key == "drizzle":
        if _contains_any(lower, "schema", "table", "column"):
            queries.append(lower)
        if _contains_any(lower, "query", "select", "insert"):
            queries.append(lower)
        if _contains_any(lower, "migration", "migrate"):
            queries.append("migrations")
        if _contains_any(lower, "relation", "join"):
            queries.append("relations")
    elif source.key == "stripe":
        if _contains_any(lower, "payment", "charge", "intent"):
            queries += ["payment_intents", "charges"]
        if _contains_any(lower, "subscription", "billing"):
            queries += ["subscriptions", "billing"]
        if _contains_any(lower, "webhook", "event"):
            queries.append("webhooks")
        if _contains_any(lower, "customer", "account"):
            queries.append("customers")
        if _contains_any(lower, "checkout", "session"):
            queries.append("checkout")

    return list(dict.fromkeys(queries))[:max_queries]


class DocsFetcher:
    """Fetches pages from the registered documentation sites.

    Requests run one after another on a single httpx client.

    Args:
        config: Timeouts, user agent and search limits.
        client: HTTP client to use; one is created when omitted.
        sources: Site registry, the built-in one by default.
    """

    def __init__(
        self,
        config: DocsConfig | None = None,
        client: httpx.Client | None = None,
        sources: dict[str, DocumentationSource] | None = None,
    ) -> None:
        self.config = config or DocsConfig()
        self.sources = sources if sources is not None else DOC_SOURCES
        self._owns_client = client is None
        self.client = client or httpx.Client(
            timeout=self.config.timeout_seconds,
            follow_redirects=True,
            headers={"User-Agent": self.config.user_agent},
        )

    def close(self) -> None:
        """Close the HTTP client if this fetcher created it."""
        if self._owns_client:
            self.client.close()

    def __enter__(self) -> "DocsFetcher":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def get_source(self, key: str) -> DocumentationSource:
        """Look up a site by key.

        Raises:
            DocsFetchError: If the key is not registered.
        """
        source = self.sources.get(key)
        if source is None:
            raise DocsFetchError(f"Unknown documentation source: {key}")
        return source

    def _primary_url(
        self, source: DocumentationSource, query: str, section: str | None
    ) -> str:
        if section and section in source.url_patterns:
            return source.build_url(source.url_patterns[section], query)

        lower = query.lower()
        for key, pattern in source.url_patterns.items():
            if key.lower() in lower or lower in key.lower():
                return source.build_url(pattern, query)

        first = next(iter(source.url_patterns.values()), "/{query}")
        return source.build_url(first, query)

    def fetch_docs(
        self, source_key: str, query: str, section: str | None = None
    ) -> DocsResult:
        """Fetch one documentation page.

        The URL comes from ``section`` when it names a known section,
        otherwise from the first section whose name overlaps the query,
        otherwise from the first section. If that page is not found,
        every section is tried in turn.

        Args:
            source_key: Registered site key, e.g. ``"react"``.
            query: Page name or path fragment, e.g. ``"useState"``.
            section: Optional section name.

        Returns:
            The parsed page.

        Raises:
            DocsFetchError: If the site is unknown or no page could be fetched.
        """
        source = self.get_source(source_key)
        url = self._primary_url(source, query, section)

        try:
            response = self.client.get(url)
            if response.is_success:
                return parse_docs_content(
                    response.text, url, source.name, self.config.body_fallback_chars
                )

            logger.debug(
                "%s returned %d, trying other %s sections",
                url,
                response.status_code,
                source.name,
            )
            for pattern in source.url_patterns.values():
                alt_url = source.build_url(pattern, query)
                alt_response = self.client.get(alt_url)
                if alt_response.is_success:
                    return parse_docs_content(
                        alt_response.text,
                        alt_url,
                        source.name,
                        self.config.body_fallback_chars,
                    )

            raise DocsFetchError(
                f'Failed to fetch {source.name} docs for "{query}". '
                f"Status: {response.status_code}"
            )
        except (httpx.HTTPError, DocsFetchError) as exc:
            raise DocsFetchError(f"Error fetching {source.name} docs: {exc}") from exc

    def search_docs(
        self,
        term: str,
        sources: list[str] | None = None,
        limit: int | None = None,
    ) -> list[DocsResult]:
        """Search several sites for pages mentioning ``term``.

        Unknown sites and pages that fail to load are skipped.

        Args:
            term: Text the page content must contain (case-insensitive).
            sources: Site keys to search, all of them by default.
            limit: Maximum number of pages to return.

        Returns:
            Matching pages in the order they were found.
        """
        limit = limit or self.config.default_search_limit
        limit = max(1, min(limit, self.config.max_search_limit))
        keys = sources if sources else list(self.sources)
        needle = term.lower()
        results: list[DocsResult] = []

        for key in keys:
            if len(results) >= limit:
                break
            source = self.sources.get(key)
            if source is None:
                logger.warning("Skipping unknown documentation source: %s", key)
                continue

            for query in expand_search_queries(
                term, source, self.config.max_queries_per_source
            ):
                if len(results) >= limit:
                    break
                try:
                    page = self.fetch_docs(key, query)
                except DocsFetchError as exc:
                    logger.debug("Search skipped %s/%s: %s", key, query, exc)
                    continue
                if needle in page.content.lower():
                    results.append(page)

        logger.info("Search for %r found %d page(s)", term, len(results))
        return results

    def list_doc_sources(self) -> dict[str, object]:
        """Describe every registered site and its sections."""
        return {
            "availableSources": {
                key: source.describe() for key, source in self.sources.items()
            },
            "totalSources": len(self.sources),
        }
