"""Signal handlers for software app."""

import logging

from django.core.signals import setting_changed
from django.dispatch import receiver

from server.apps.software.conf import WATCHED_SETTINGS, reset_software_settings

logger = logging.getLogger(__name__)


@receiver(setting_changed)
def reset_settings_on_change(
    sender: object,
    setting: str,
    **kwargs: object,
) -> None:
    """Drop cached SoftwareSettings when an underlying setting changes.

    Django sends ``setting_changed`` from ``override_settings``, which
    is how tests point the app at temporary directories.

    Args:
        sender: Signal sender.
        setting: Name of the changed setting.
        **kwargs: Additional signal arguments.
    """
    if setting in WATCHED_SETTINGS:
        logger.debug('Setting %s changed, rebuilding software settings', setting)
        reset_software_settings()
