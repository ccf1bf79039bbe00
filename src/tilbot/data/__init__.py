"""External data providers."""

from tilbot.config.models import Project
from tilbot.config.settings import DataConfig
from tilbot.core.interfaces import IDataProvider
from tilbot.data.bridge import BridgeDataProvider
from tilbot.data.provider import (
    GuardedDataProvider,
    InMemoryDataProvider,
    NullDataProvider,
    TableDataProvider,
)
from tilbot.data.tables import CsvDataProvider


def create_data_provider(config: DataConfig, project: Project) -> IDataProvider:
    """Create the provider a data configuration asks for."""
    if config.backend == "csv":
        return CsvDataProvider.from_project(project, config.path, cache_ttl=config.cache_ttl)
    return NullDataProvider()


__all__ = [
    "BridgeDataProvider",
    "CsvDataProvider",
    "GuardedDataProvider",
    "InMemoryDataProvider",
    "NullDataProvider",
    "TableDataProvider",
    "create_data_provider",
]
