"""Service factory for centralized dependency injection.

This module provides the ServiceFactory class which acts as a dependency
injection container, creating the import pipeline from one configuration
and sharing the expensive clients between its stages.

Example:
    >>> config = ImportConfig.load()
    >>> async with ServiceFactory(config) as factory:
    ...     importer = factory.create_importer()
    ...     result = await importer.fetch_recipe(url)
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import cached_property
from typing import TYPE_CHECKING, Any

import httpx

if TYPE_CHECKING:
    from ..annotation import RecipeAnnotator
    from ..config import ImportConfig
    from ..extractors import BrowserSource, InstagramCaptionSource, JsonLdSource
    from ..fetching import PageFetcher
    from ..generation import OpenAIGenerator
    from ..orchestrator import RecipeImporter
    from ..protocols import RecipeSource
    from ..repository import FileRecipeRepository
    from ..sanity import SanityChecker


@dataclass
class ServiceFactory:
    """Factory for creating pipeline services with shared dependencies.

    One HTTP client and one generator are shared by every service the
    factory creates. Use the factory as an async context manager, or call
    :meth:`aclose`, to release the HTTP client.

    Attributes:
        config: Import configuration for all services
    """

    config: ImportConfig

    @cached_property
    def http_client(self) -> httpx.AsyncClient:
        """Shared async HTTP client, created on first access."""
        return httpx.AsyncClient(timeout=self.config.fetch_timeout)

    @cached_property
    def generator(self) -> OpenAIGenerator:
        """Shared generation collaborator, created on first access."""
        from ..generation import OpenAIGenerator

        return OpenAIGenerator(
            model=self.config.model,
            temperature=self.config.temperature,
            timeout=self.config.request_timeout,
        )

    def create_fetcher(self) -> PageFetcher:
        """Create a page fetcher on the shared HTTP client."""
        from ..fetching import PageFetcher

        return PageFetcher(
            self.http_client,
            timeout=self.config.fetch_timeout,
            user_agent=self.config.user_agent,
        )

    def create_json_ld_source(self) -> JsonLdSource:
        """Create the structured-data strategy."""
        from ..extractors import JsonLdSource

        return JsonLdSource(self.create_fetcher())

    def create_browser_source(self) -> BrowserSource:
        """Create the browser fallback strategy."""
        from ..extractors import BrowserSource

        return BrowserSource(
            self.generator,
            page_load_timeout=self.config.page_load_timeout,
            user_agent=self.config.user_agent,
            headless=self.config.headless,
            max_page_chars=self.config.max_page_chars,
        )

    def create_instagram_source(self) -> InstagramCaptionSource:
        """Create the Instagram caption strategy."""
        from ..extractors import InstagramCaptionSource

        return InstagramCaptionSource(self.create_fetcher(), self.generator)

    def create_checker(self) -> SanityChecker:
        """Create the completeness sanity check."""
        from ..sanity import SanityChecker

        return SanityChecker(self.generator)

    def create_annotator(self) -> RecipeAnnotator:
        """Create the annotation stage."""
        from ..annotation import RecipeAnnotator

        return RecipeAnnotator(self.generator)

    def create_importer(self) -> RecipeImporter:
        """Create the full import pipeline.

        The browser fallback is appended to the chain unless disabled with
        ``enable_browser_fallback``.
        """
        from ..orchestrator import RecipeImporter

        strategies: list[RecipeSource] = [self.create_json_ld_source()]
        if self.config.enable_browser_fallback:
            strategies.append(self.create_browser_source())

        return RecipeImporter(
            strategies=strategies,
            annotator=self.create_annotator(),
            checker=self.create_checker(),
            domain_sources=[self.create_instagram_source()],
        )

    def create_repository(self) -> FileRecipeRepository:
        """Create the file-backed recipe repository."""
        from ..repository import FileRecipeRepository

        return FileRecipeRepository(self.config.output_dir)

    async def aclose(self) -> None:
        """Close the shared HTTP client if it was created."""
        if "http_client" in self.__dict__:
            await self.http_client.aclose()
            del self.__dict__["http_client"]

    async def __aenter__(self) -> ServiceFactory:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
