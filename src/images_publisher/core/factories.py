"""Factory classes for creating configured service instances."""

from typing import Optional

import httpx

from .github_client import GitHubClient
from .models import PublishConfig
from .observability import StructuredLogger
from .protocols import ClientFactory, LoggerProtocol, RepositoryClientProtocol
from .services import CommitOrchestrator, ImageTransformService


class LoggerFactory:
    """Factory for creating logger instances."""

    @staticmethod
    def create_logger(name: str, level: Optional[str] = None) -> LoggerProtocol:
        """Create a configured structured logger (level defaults to $LOG_LEVEL)."""
        return StructuredLogger(name, level=level)


class GitHubClientFactory:
    """Factory for creating GitHub client instances."""

    @staticmethod
    def create_client(
        token: str,
        config: Optional[PublishConfig] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> RepositoryClientProtocol:
        """Create a GitHub client for ``token`` using the configured endpoint."""
        config = config or PublishConfig()
        return GitHubClient(
            token,
            api_url=config.api_url,
            timeout=config.timeout,
            transport=transport,
        )


class PublishPipelineFactory:
    """Factory for creating the complete publishing pipeline."""

    @staticmethod
    def create_pipeline(
        config: Optional[PublishConfig] = None,
        client_factory: Optional[ClientFactory] = None,
        logger: Optional[LoggerProtocol] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> CommitOrchestrator:
        """Create a fully configured commit orchestrator."""
        config = config or PublishConfig()

        if client_factory is None:
            def client_factory(token: str) -> RepositoryClientProtocol:
                return GitHubClientFactory.create_client(token, config, transport)

        if logger is None:
            logger = LoggerFactory.create_logger(
                "images-publisher", level="DEBUG" if config.debug else None
            )

        return CommitOrchestrator(
            client_factory=client_factory,
            transformer=ImageTransformService(),
            logger=logger,
            config=config,
        )
