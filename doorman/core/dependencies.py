"""FastAPI dependencies."""
from typing import Optional

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from doorman.core.config import settings
from doorman.db.database import get_db
from doorman.services.call_session.registry import SessionRegistry
from doorman.services.persistence.calls import CallPersistenceService
from doorman.services.script.database_provider import DatabaseScriptProvider
from doorman.services.script.repository import ScriptRepository
from doorman.services.script.yaml_provider import YamlScriptProvider

# Module-level session storage (persists across requests)
_registry = SessionRegistry()

_yaml_provider: Optional[YamlScriptProvider] = None


def get_session_registry() -> SessionRegistry:
    """Get the registry of in-progress calls."""
    return _registry


def get_yaml_provider() -> YamlScriptProvider:
    """Get the shared YAML script provider, loading its file once."""
    global _yaml_provider
    if _yaml_provider is None:
        _yaml_provider = YamlScriptProvider(scripts_file=settings.scripts_file)
    return _yaml_provider


def get_script_repository(db: AsyncSession = Depends(get_db)) -> ScriptRepository:
    """Get script repository for the configured script source."""
    if settings.script_source == "database":
        return ScriptRepository(provider=DatabaseScriptProvider(db))
    return ScriptRepository(provider=get_yaml_provider())


def get_call_persistence(db: AsyncSession = Depends(get_db)) -> CallPersistenceService:
    """Get call log persistence service."""
    return CallPersistenceService(db)
