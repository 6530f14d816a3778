"""Factory for creating kudos store instances."""

from typing import cast

from src.adapters.sqlite_kudos_store import SQLiteKudosStore
from src.config.logging_config import get_logger
from src.config.settings import Settings
from src.domain.protocols import KudosStoreProtocol

logger = get_logger(__name__)


def create_kudos_store(settings: Settings) -> KudosStoreProtocol:
    """Create the kudos store configured by settings.

    Args:
        settings: Application settings

    Returns:
        Store instance (SQLite)

    Raises:
        RepositoryError: When the database cannot be opened or migrated
    """
    db_path = settings.kudos_db_path
    logger.info("repository_sqlite_selected", path=db_path)
    store = SQLiteKudosStore(db_path=db_path)
    logger.info("kudos_store_ready", path=db_path, total_kudos=store.count())
    return cast(KudosStoreProtocol, store)
