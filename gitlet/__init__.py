from loguru import logger

from .base import Blob, ContentStore
from .branch import Branch
from .commit import Commit, create_commit, create_initial_commit
from .config import StorageConfig
from .errors import (
    ConfigError,
    ConflictError,
    GitletError,
    NotFoundError,
    StateError,
    UsageError,
    ValidationError,
)
from .impl.files import create_file_content_store
from .impl.memory import create_memory_content_store
from .impl.sql import create_sql_content_store, create_sql_content_store_from_url
from .repository import Repository, create_repository, open_repository
from .stage import StagingArea

logger.disable("gitlet")

__all__ = [
    "Blob",
    "ContentStore",
    "Branch",
    "Commit",
    "create_commit",
    "create_initial_commit",
    "StorageConfig",
    "ConfigError",
    "ConflictError",
    "GitletError",
    "NotFoundError",
    "StateError",
    "UsageError",
    "ValidationError",
    "create_file_content_store",
    "create_memory_content_store",
    "create_sql_content_store",
    "create_sql_content_store_from_url",
    "Repository",
    "create_repository",
    "open_repository",
    "StagingArea",
]
