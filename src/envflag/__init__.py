"""envflag: feature flag evaluation with environment overlays."""

from .app import FlagApplication, build_application
from .cache import FlagCache
from .config import AppConfig
from .exceptions import (
    AlreadyExistsError,
    ApplicationError,
    ConfigError,
    FeatureFlagError,
    FeatureFlagErrorCodes,
    NotFoundError,
)
from .loader import deep_merge, load, overlay_path
from .logger import new_logger
from .memory import InMemoryDocumentStore
from .models import Context, Environment, FeatureFlag, Filters, Rule
from .operators import Contains, Is, IsNot, IsNotOneOf, IsOneOf, Operator, match_all
from .repository import (
    DocumentRepository,
    Repository,
    UniqueNameRepository,
    environment_repository,
    feature_flag_repository,
)
from .resolver import OverlayResolver
from .services import EnvironmentService, FeatureFlagService
from .store import DocumentCollection, DocumentStore, StoreError

__all__ = [
    "AlreadyExistsError",
    "AppConfig",
    "ApplicationError",
    "ConfigError",
    "Contains",
    "Context",
    "DocumentCollection",
    "DocumentRepository",
    "DocumentStore",
    "Environment",
    "EnvironmentService",
    "FeatureFlag",
    "FeatureFlagError",
    "FeatureFlagErrorCodes",
    "FeatureFlagService",
    "Filters",
    "FlagApplication",
    "FlagCache",
    "InMemoryDocumentStore",
    "Is",
    "IsNot",
    "IsNotOneOf",
    "IsOneOf",
    "NotFoundError",
    "Operator",
    "OverlayResolver",
    "Repository",
    "Rule",
    "StoreError",
    "UniqueNameRepository",
    "build_application",
    "deep_merge",
    "environment_repository",
    "feature_flag_repository",
    "load",
    "match_all",
    "new_logger",
    "overlay_path",
]
