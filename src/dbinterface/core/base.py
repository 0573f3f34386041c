"""Base classes for DBInterface components.

Classes:
    BaseComponent: Generic base class holding a typed configuration
    AsyncComponent: Base class with async initialize/cleanup lifecycle

Example:
    >>> class UserLookup(AsyncComponent[ServerConfig]):
    ...     async def _async_initialize(self) -> None:
    ...         self.connection = await open_connection(self.config)
"""

import asyncio
import time
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Dict, Generic, TypeVar

import structlog

from .exceptions import ConfigurationError, DBInterfaceException, ValidationError

T = TypeVar("T")  # Configuration type


class BaseComponent(Generic[T], ABC):
    """Base class for all DBInterface components.

    Type Parameters:
        T: Type of configuration object this component accepts

    Attributes:
        component_name: Name of the component for logging and identification
        version: Component version
    """

    component_name: ClassVar[str] = "BaseComponent"
    version: ClassVar[str] = "1.0.0"

    def __init__(self, config: T) -> None:
        """Initialize base component.

        Args:
            config: Configuration object for this component

        Raises:
            ValidationError: If configuration is None
            ConfigurationError: If configuration fails validation
        """
        if config is None:
            raise ValidationError(
                "Configuration cannot be None",
                code="CONFIG_NULL",
                context={"component": self.component_name},
            )

        self._config: T = config
        self._initialized: bool = False
        self._creation_time: float = time.time()
        self._logger = structlog.get_logger(self.__class__.__name__)

        if not self.validate_config():
            raise ConfigurationError(
                f"Invalid configuration for {self.component_name}",
                code="CONFIG_INVALID",
                context={"component": self.component_name},
            )

    @property
    def config(self) -> T:
        """Get component configuration."""
        return self._config

    @property
    def is_initialized(self) -> bool:
        """Check if component is initialized."""
        return self._initialized

    @property
    def uptime(self) -> float:
        """Seconds since the component was created."""
        return time.time() - self._creation_time

    def validate_config(self) -> bool:
        """Validate component configuration.

        Subclasses override this to add component-specific checks.
        """
        return self._config is not None

    def get_health_status(self) -> Dict[str, Any]:
        """Get component health status."""
        return {
            "component": self.component_name,
            "version": self.version,
            "initialized": self._initialized,
            "uptime_seconds": self.uptime,
            "status": "healthy" if self._initialized else "not_initialized",
        }

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"name={self.component_name!r}, "
            f"initialized={self._initialized})"
        )


class AsyncComponent(BaseComponent[T]):
    """Base class for components that own I/O resources.

    ``initialize`` and ``cleanup`` are idempotent; subclasses implement
    ``_async_initialize`` and optionally ``_async_cleanup``.
    """

    def __init__(self, config: T) -> None:
        super().__init__(config)
        self._initialization_lock = asyncio.Lock()
        self._cleanup_lock = asyncio.Lock()

    async def initialize(self) -> None:
        """Initialize component asynchronously.

        Raises:
            DBInterfaceException: If initialization fails. Exceptions that
                are already DBInterface exceptions propagate unchanged.
        """
        async with self._initialization_lock:
            if self._initialized:
                return

            self._logger.info("Initializing component", component=self.component_name)

            try:
                await self._async_initialize()
            except DBInterfaceException:
                self._logger.error("Component initialization failed", component=self.component_name)
                raise
            except Exception as e:
                self._logger.error(
                    "Component initialization failed",
                    component=self.component_name,
                    error=str(e),
                )
                raise DBInterfaceException(
                    f"Failed to initialize {self.component_name}",
                    code="INIT_FAILED",
                    context={"component": self.component_name},
                    cause=e,
                ) from e

            self._initialized = True
            self._logger.info("Component initialized successfully", component=self.component_name)

    async def cleanup(self) -> None:
        """Release component resources; errors are logged, not raised."""
        async with self._cleanup_lock:
            if not self._initialized:
                return

            try:
                await self._async_cleanup()
            except Exception as e:
                # Cleanup must not mask the error that triggered it
                self._logger.error(
                    "Component cleanup failed",
                    component=self.component_name,
                    error=str(e),
                )
            finally:
                self._initialized = False

    @abstractmethod
    async def _async_initialize(self) -> None:
        """Perform async initialization work."""

    async def _async_cleanup(self) -> None:
        """Perform async cleanup work."""

    async def __aenter__(self) -> "AsyncComponent[T]":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.cleanup()
