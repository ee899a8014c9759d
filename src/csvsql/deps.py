"""
csvsql - Dependency Injection.

FastAPI dependencies for settings, feature flags and the database service.
"""

from typing import Annotated

from fastapi import Depends, Request

from csvsql.config import FeatureFlags, Settings, get_settings
from csvsql.core.database_service import DatabaseService
from csvsql.exceptions import FeatureDisabledException


# =============================================================================
# Settings Dependencies
# =============================================================================


def get_features(settings: Annotated[Settings, Depends(get_settings)]) -> FeatureFlags:
    """Get feature flags from settings."""
    return settings.features


# =============================================================================
# Services
# =============================================================================


def get_database_service(request: Request) -> DatabaseService:
    """The service owned by the running application (see main.lifespan)."""
    return request.app.state.database_service


DatabaseServiceDep = Annotated[DatabaseService, Depends(get_database_service)]


# =============================================================================
# Feature Flag Guards
# =============================================================================


def require_feature(feature_name: str):
    """Create a dependency that requires a specific feature to be enabled."""

    def check_feature(features: Annotated[FeatureFlags, Depends(get_features)]) -> bool:
        if not getattr(features, feature_name, False):
            raise FeatureDisabledException(feature_name)
        return True

    return check_feature


require_csv_import = Depends(require_feature("csv_import"))
require_query = Depends(require_feature("query"))
require_stateless_query = Depends(require_feature("stateless_query"))
require_metrics = Depends(require_feature("metrics"))
