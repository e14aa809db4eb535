"""Repository factory for centralized backend creation."""

from typing import Callable, Dict, Type

from nano_shardbackup.base import BaseBackupRepository
from nano_shardbackup.config import RepositoryConfig


class RepositoryFactory:
    """Factory for creating backup repositories with validation and registration."""

    _repository_backends: Dict[str, Callable[[], Type[BaseBackupRepository]]] = {}

    # Maintain current restrictions from RepositoryConfig
    ALLOWED_REPOSITORY = {"local", "s3"}

    @classmethod
    def register_repository(cls, name: str, backend_loader: Callable[[], Type[BaseBackupRepository]]) -> None:
        """Register a repository backend.

        Args:
            name: Backend name (must be in ALLOWED_REPOSITORY)
            backend_loader: Function that returns the repository class

        Raises:
            ValueError: If backend name not in allowed list
        """
        if name not in cls.ALLOWED_REPOSITORY:
            raise ValueError(f"Backend {name} not in allowed repository backends: {cls.ALLOWED_REPOSITORY}")
        cls._repository_backends[name] = backend_loader

    @classmethod
    def create_repository(
        cls,
        backend: str,
        global_config: dict,
    ) -> BaseBackupRepository:
        """Create a repository instance.

        Args:
            backend: Backend name
            global_config: Global configuration dict

        Returns:
            Initialized repository instance

        Raises:
            ValueError: If backend not registered
        """
        if backend not in cls._repository_backends:
            # Try to register backends if not already done
            _register_backends()
            if backend not in cls._repository_backends:
                raise ValueError(
                    f"Unknown repository backend: {backend}. Available: {list(cls._repository_backends.keys())}"
                )

        # Get the backend class through the loader
        backend_class = cls._repository_backends[backend]()
        return backend_class(global_config=global_config)

    @classmethod
    def create_repository_from_config(cls, config: RepositoryConfig) -> BaseBackupRepository:
        return cls.create_repository(config.backend, config.to_dict())


def _get_local_repository():
    """Lazy loader for the local filesystem repository."""
    from .repo_local import LocalBackupRepository
    return LocalBackupRepository


def _get_s3_repository():
    """Lazy loader for the S3 repository."""
    from .repo_s3 import S3BackupRepository
    return S3BackupRepository


def _register_backends():
    """Register built-in backends with lazy loaders. Called when factory is first used."""
    if not RepositoryFactory._repository_backends:
        RepositoryFactory.register_repository("local", _get_local_repository)
        RepositoryFactory.register_repository("s3", _get_s3_repository)
