"""Validation of a PurgeConfig before any request is dispatched.

Rules are checked in a fixed order and the first violation is raised; errors
are never aggregated.
"""

import logging

from fastpurge.domain.exceptions import ConfigValidationError
from fastpurge.domain.models.common import FileType, PurgeMethod, PurgeNetwork, allowed_values
from fastpurge.domain.models.purge import PurgeConfig

logger = logging.getLogger(__name__)

_CREDENTIAL_FIELDS = ("host", "client_token", "client_secret", "access_token")


def validate_config(config: PurgeConfig) -> None:
    """Checks a PurgeConfig, raising on the first violated rule.

    Order: host, client token, client secret, access token, method, network,
    file type.

    Raises:
        ConfigValidationError: With ``field`` naming the offending setting.
    """
    for name in _CREDENTIAL_FIELDS:
        if not getattr(config.credentials, name):
            raise ConfigValidationError(name, f'edgerc does not have "{name}" parameter')

    if config.method not in allowed_values(PurgeMethod):
        raise ConfigValidationError(
            "method", 'invalidation method must be "invalidate" or "delete"'
        )
    if config.network not in allowed_values(PurgeNetwork):
        raise ConfigValidationError(
            "network", 'invalidation network must be "production" or "staging"'
        )
    if config.file_type not in allowed_values(FileType):
        raise ConfigValidationError(
            "file_type", 'invalidation list type must be "json" or "text"'
        )

    logger.debug(
        f"Config valid: method={config.method}, network={config.network}, file_type={config.file_type}"
    )
