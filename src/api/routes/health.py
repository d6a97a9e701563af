from fastapi import APIRouter, Depends
from src.core.config import settings
from src.services.client_factory import ServiceContainer, get_service_container

router = APIRouter()

@router.get("/")
async def root():
    """Basic health check endpoint."""
    return {"message": "Kontent.ai Content Validator API", "status": "healthy"}

@router.get("/health")
async def health_check(container: ServiceContainer = Depends(get_service_container)):
    """
    Comprehensive health check endpoint.

    Verifies:
    - Kontent.ai configuration (custom app context or KONTENT_* variables)
    - Management API client initialization and connectivity
    - Current validation run status
    """
    health_status = {
        "status": "healthy",
        "service": "Kontent.ai Content Validator",
        "version": "1.0",
    }

    app_config = container.app_config
    content_source = container.content_source

    # Configuration checks
    config_checks = {
        "mode": "custom_app" if app_config.is_custom_app else "local_dev",
        "environment_id": app_config.environment_id,
        "management_api_configured": content_source.is_ready(),
        "api_key_required": settings.REQUIRE_API_KEY,
        "validate_by_collection_enabled": app_config.is_filter_enabled("validateByCollection"),
    }
    health_status.update(config_checks)

    # Connectivity check
    if config_checks["management_api_configured"]:
        reachable = await content_source.health_check()
        health_status["management_api_reachable"] = reachable
        if not reachable:
            health_status["status"] = "degraded"
            health_status["warning"] = "Kontent.ai Management API is not reachable"

    # Run status
    state = container.store.state
    health_status["validation_running"] = state.is_running
    health_status["results_count"] = len(state.results)

    # Overall status
    if not config_checks["management_api_configured"]:
        health_status["status"] = "degraded"
        health_status["warning"] = content_source.initialization_error or "Kontent.ai Management API not configured"

    return health_status
