"""Registry of online documentation sites served by the docs MCP server."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class DocumentationSource:
    """An online documentation site and the URL templates for its pages.

    ``url_patterns`` maps a section name to a path template appended to
    ``base_url``; ``{query}`` is replaced with the requested page.
    Pattern order matters: the first one is the default.
    """

    key: str
    name: str
    base_url: str
    search_paths: list[str] = field(default_factory=list)
    url_patterns: dict[str, str] = field(default_factory=dict)

    @property
    def sections(self) -> list[str]:
        """Section names accepted by ``fetch_docs``."""
        return list(self.url_patterns)

    def build_url(self, pattern: str, query: str) -> str:
        """Expand a path template into an absolute URL."""
        return self.base_url + pattern.replace("{query}", query)

    def describe(self) -> dict[str, object]:
        """Summary used by the ``list_doc_sources`` tool."""
        return {
            "name": self.name,
            "baseUrl": self.base_url,
            "sections": self.sections,
            "searchPaths": list(self.search_paths),
        }


DOC_SOURCES: dict[str, DocumentationSource] = {
    source.key: source
    for source in (
        DocumentationSource(
            key="react",
            name="React",
            base_url="https://react.dev",
            search_paths=["learn", "reference"],
            url_patterns={
                "hooks": "/reference/react/{query}",
                "components": "/reference/react-dom/components/{query}",
                "learn": "/learn/{query}",
                "reference": "/reference/react/{query}",
            },
        ),
        DocumentationSource(
            key="nextjs",
            name="Next.js",
            base_url="https://nextjs.org/docs",
            search_paths=["app", "pages", "api-reference"],
            url_patterns={
                "app": "/app/{query}",
                "pages": "/pages/{query}",
                "api": "/api-reference/{query}",
                "routing": "/app/building-your-application/routing/{query}",
                "data-fetching": "/app/building-your-application/data-fetching/{query}",
            },
        ),
        DocumentationSource(
            key="typescript",
            name="TypeScript",
            base_url="https://www.typescriptlang.org/docs",
            search_paths=["handbook", "reference"],
            url_patterns={
                "handbook": "/handbook/{query}",
                "reference": "/reference/{query}",
                "config": "/tsconfig/{query}",
            },
        ),
        DocumentationSource(
            key="tailwind",
            name="Tailwind CSS",
            base_url="https://tailwindcss.com/docs",
            search_paths=["installation", "components", "utilities"],
            url_patterns={
                "utilities": "/{query}",
                "components": "/components/{query}",
                "config": "/configuration/{query}",
            },
        ),
        DocumentationSource(
            key="vercel",
            name="Vercel",
            base_url="https://vercel.com/docs",
            search_paths=["concepts", "functions", "deployments"],
            url_patterns={
                "concepts": "/concepts/{query}",
                "functions": "/functions/{query}",
                "deployments": "/deployments/{query}",
            },
        ),
        DocumentationSource(
            key="tanstack-query",
            name="TanStack Query",
            base_url="https://tanstack.com/query/v5/docs",
            search_paths=["framework", "reference", "examples"],
            url_patterns={
                "guides": "/framework/react/guides/{query}",
                "reference": "/framework/react/reference/{query}",
                "examples": "/examples/{query}",
                "overview": "/framework/react/overview/{query}",
                "blog": "/framework/react/community/tkdodos-blog/{query}",
            },
        ),
        DocumentationSource(
            key="turborepo",
            name="Turborepo",
            base_url="https://turbo.build/repo/docs",
            search_paths=["guides", "reference", "handbook", "core-concepts"],
            url_patterns={
                "guides": "/guides/{query}",
                "handbook": "/handbook/{query}",
                "reference": "/reference/{query}",
                "core-concepts": "/core-concepts/{query}",
                "getting_started": "/getting-started/{query}",
            },
        ),
        DocumentationSource(
            key="shadcn-ui",
            name="shadcn/ui",
            base_url="https://ui.shadcn.com/docs",
            search_paths=["components", "installation", "theming", "monorepo"],
            url_patterns={
                "components": "/components/{query}",
                "installation": "/installation/{query}",
                "theming": "/theming/{query}",
                "examples": "/examples/{query}",
                "charts": "/charts/{query}",
                "monorepo": "/monorepo/{query}",
            },
        ),
        DocumentationSource(
            key="postgresql",
            name="PostgreSQL",
            base_url="https://www.postgresql.org/docs/current",
            search_paths=["sql", "functions", "admin"],
            url_patterns={
                "sql": "/sql-{query}.html",
                "functions": "/functions-{query}.html",
                "reference": "/{query}.html",
                "tutorial": "/tutorial-{query}.html",
                "admin": "/admin-{query}.html",
            },
        ),
        DocumentationSource(
            key="drizzle",
            name="Drizzle ORM",
            base_url="https://orm.drizzle.team/docs",
            search_paths=["get-started", "sql-schema-declaration", "queries"],
            url_patterns={
                "schema": "/sql-schema-declaration/{query}",
                "queries": "/queries/{query}",
                "migrations": "/migrations/{query}",
                "get-started": "/get-started/{query}",
                "performance": "/performance/{query}",
            },
        ),
        DocumentationSource(
            key="stripe",
            name="Stripe",
            base_url="https://docs.stripe.com",
            search_paths=["api", "payments", "billing", "connect"],
            url_patterns={
                "api": "/api/{query}",
                "payments": "/payments/{query}",
                "billing": "/billing/{query}",
                "connect": "/connect/{query}",
                "checkout": "/checkout/{query}",
                "webhooks": "/webhooks/{query}",
            },
        ),
    )
}
