"""
Runtime environment detection for the Kontent.ai connection.

The service either runs embedded as a Kontent.ai Custom App, in which case the
host hands over a context object (environment, keys, current user and the
app's own configuration flags), or in local development where the same values
come from KONTENT_* environment variables. The shape is resolved once at
startup and injected into every collaborator.
"""
import json
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

from src.core.config import Settings, settings as default_settings
from src.core.error_handling import ClientConfigurationError

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("environment_id", "management_api_key", "delivery_api_key")


@dataclass(frozen=True)
class UserInfo:
    """Identity of the Kontent.ai user the custom app is opened by."""
    id: str
    email: Optional[str] = None
    roles: tuple = ()


@dataclass(frozen=True)
class CustomAppConfig:
    """Configuration supplied by the Kontent.ai custom-app host."""
    environment_id: Optional[str]
    management_api_key: Optional[str]
    delivery_api_key: Optional[str]
    management_api_url: str
    app_url: str
    user: Optional[UserInfo] = None
    app_settings: Dict[str, str] = field(default_factory=dict)

    is_custom_app = True

    def is_filter_enabled(self, config_key: str) -> bool:
        """Filters are opt-in: only the literal string 'true' enables one."""
        return self.app_settings.get(config_key) == "true"

    def item_url(self, item_id: str) -> Optional[str]:
        return f"{self.app_url}/content/{item_id}"

    def edit_url(self, item_id: str, language_id: str) -> Optional[str]:
        return f"{self.app_url}/content/{item_id}/edit/{language_id}"


@dataclass(frozen=True)
class LocalDevConfig:
    """Configuration read from environment variables during local development."""
    environment_id: Optional[str]
    management_api_key: Optional[str]
    delivery_api_key: Optional[str]
    management_api_url: str
    app_url: str

    is_custom_app = False

    def is_filter_enabled(self, config_key: str) -> bool:
        # Every filter is available locally for testing
        return True

    def item_url(self, item_id: str) -> Optional[str]:
        return None

    def edit_url(self, item_id: str, language_id: str) -> Optional[str]:
        return None


AppConfig = Union[CustomAppConfig, LocalDevConfig]


def _parse_user(raw: Optional[dict]) -> Optional[UserInfo]:
    if not raw or not raw.get("id"):
        return None
    roles: List[str] = [
        role.get("codename") or role.get("id")
        for role in raw.get("roles") or []
        if isinstance(role, dict)
    ]
    return UserInfo(id=raw["id"], email=raw.get("email"), roles=tuple(roles))


def detect_app_config(settings: Optional[Settings] = None) -> AppConfig:
    """
    Resolve the runtime configuration shape once.

    Args:
        settings: Settings to read (defaults to the process settings)

    Returns:
        CustomAppConfig when a custom-app context is present, LocalDevConfig otherwise

    Raises:
        ClientConfigurationError: If the custom-app context is not valid JSON
    """
    settings = settings or default_settings

    if settings.KONTENT_CUSTOM_APP_CONTEXT:
        try:
            context = json.loads(settings.KONTENT_CUSTOM_APP_CONTEXT)
        except json.JSONDecodeError as e:
            raise ClientConfigurationError(f"Invalid custom app context: {e}") from e

        if not isinstance(context, dict):
            raise ClientConfigurationError("Invalid custom app context: expected a JSON object")

        app_settings = context.get("config") or {}
        logger.info("Running as Kontent.ai custom app")
        return CustomAppConfig(
            environment_id=context.get("environmentId"),
            management_api_key=context.get("managementApiKey"),
            delivery_api_key=context.get("deliveryApiKey"),
            management_api_url=settings.KONTENT_MANAGEMENT_API_URL,
            app_url=settings.KONTENT_APP_URL,
            user=_parse_user(context.get("userInfo")),
            app_settings={str(k): str(v).lower() for k, v in app_settings.items()},
        )

    logger.info("Running in local development mode")
    return LocalDevConfig(
        environment_id=settings.KONTENT_ENVIRONMENT_ID,
        management_api_key=settings.KONTENT_MANAGEMENT_API_KEY,
        delivery_api_key=settings.KONTENT_DELIVERY_API_KEY,
        management_api_url=settings.KONTENT_MANAGEMENT_API_URL,
        app_url=settings.KONTENT_APP_URL,
    )


def validate_app_config(config: AppConfig) -> bool:
    """
    Ensure all required connection values are present.

    Raises:
        ClientConfigurationError: Listing every missing field
    """
    missing = [name for name in REQUIRED_FIELDS if not getattr(config, name)]
    if missing:
        raise ClientConfigurationError(
            f"Missing required Kontent.ai configuration: {', '.join(missing)}"
        )
    return True
