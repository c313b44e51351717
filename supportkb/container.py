import logging
from dataclasses import dataclass, field
from typing import Any, Callable, TypeVar

from .config.settings import Settings
from .core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class Container:
    """Factory registry keyed by interface type."""
    _factories: dict[type, Callable[[], Any]] = field(default_factory=dict)
    _instances: dict[type, Any] = field(default_factory=dict)
    _shared: set[type] = field(default_factory=set)

    def register(
        self, interface: type[T], factory: Callable[[], T], singleton: bool = False
    ) -> None:
        """Register factory for interface.

        Re-registering an interface drops any instance already built for it.

        Args:
            interface: Interface type.
            factory: Factory function.
            singleton: Whether to cache instance.
        """
        self._factories[interface] = factory
        self._instances.pop(interface, None)
        if singleton:
            self._shared.add(interface)
        else:
            self._shared.discard(interface)

    def override(self, interface: type[T], instance: T) -> None:
        """Pin a ready-made instance, e.g. a test double."""
        self._factories[interface] = lambda: instance
        self._instances[interface] = instance
        self._shared.add(interface)

    def resolve(self, interface: type[T]) -> T:
        if interface in self._instances:
            return self._instances[interface]

        factory = self._factories.get(interface)
        if factory is None:
            raise ConfigurationError(
                f"No factory registered for {interface.__name__}",
                {"interface": interface.__name__},
            )

        instance = factory()
        if interface in self._shared:
            self._instances[interface] = instance
        return instance

    def __contains__(self, interface: type) -> bool:
        return interface in self._factories

    def reset(self) -> None:
        """Drop cached instances; registrations stay."""
        self._instances.clear()


container = Container()


def configure_container(settings: Settings, target: Container | None = None) -> Container:
    """Configure container with all dependencies.

    Args:
        settings: Application settings.
        target: Container to configure (the module container by default).

    Returns:
        Configured container.
    """
    from .core.protocols.loader import DocumentLoaderProtocol
    from .core.services.index_service import IndexService
    from .core.services.ingest_service import IngestService
    from .core.strategies.chunking import ChunkingOptions
    from .core.text.term_cache import TermCache
    from .infrastructure.document_loaders import CompositeLoader

    target = target if target is not None else container

    target.register(
        TermCache,
        lambda: TermCache(capacity=settings.term_cache_size),
        singleton=True,
    )

    target.register(DocumentLoaderProtocol, CompositeLoader, singleton=True)

    target.register(
        IngestService,
        lambda: IngestService(
            docs_path=settings.docs_path,
            tenant_id=settings.tenant_id,
            project_id=settings.project_id,
            chunking=ChunkingOptions.from_settings(settings),
            include_patterns=settings.ingest_include_patterns,
            exclude_patterns=settings.ingest_exclude_patterns,
            concurrency=settings.ingest_concurrency,
            loader=target.resolve(DocumentLoaderProtocol),
        ),
        singleton=True,
    )

    target.register(
        IndexService,
        lambda: IndexService(
            tenant_id=settings.tenant_id,
            project_id=settings.project_id,
            term_cache=target.resolve(TermCache),
        ),
        singleton=True,
    )

    logger.debug("Container configured")
    return target


def build_search_service(index, settings: Settings, target: Container | None = None):
    """Search service for a freshly built index, wired from settings.

    Args:
        index: Retrieval index.
        settings: Application settings.
        target: Container holding the shared term cache.

    Returns:
        Configured SearchService.
    """
    from .core.services.search_service import SearchService
    from .core.strategies.scoring import ScoreGapStrategy, SourceDiversityStrategy
    from .core.text.term_cache import TermCache

    target = target if target is not None else container

    return SearchService(
        index=index,
        term_cache=target.resolve(TermCache),
        top_k=settings.rag_top_k,
        min_score=settings.rag_min_score,
        strategies=[
            ScoreGapStrategy(settings.rag_max_score_gap),
            SourceDiversityStrategy(settings.rag_max_per_source),
        ],
        ticket_query_limit=settings.ticket_query_limit,
    )
