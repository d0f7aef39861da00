import logging

from django.db.models import F
from django.utils import timezone

from core.exceptions import NotFound, StateConflict

logger = logging.getLogger(__name__)


def lock_for_update(model, label=None, **lookup):
    """Fetch one row under SELECT ... FOR UPDATE. Must run inside transaction.atomic()."""
    try:
        return model.objects.select_for_update().get(**lookup)
    except model.DoesNotExist:
        described = ', '.join(f"{k}={v}" for k, v in lookup.items())
        raise NotFound(f"{label or model._meta.verbose_name.capitalize()} not found ({described})")


def check_version(instance, expected_version):
    if expected_version is not None and int(expected_version) != instance.version:
        raise StateConflict(
            f"{type(instance).__name__} {instance.pk} is at version {instance.version}, not {expected_version}",
            expected_version=int(expected_version),
            current_version=instance.version,
        )


def compare_and_set(instance, expected_version=None, **changes):
    """
    Write ``changes`` only if the row still carries the expected version.

    The expected version defaults to the one ``instance`` was read at. Bumps the
    version, refreshes ``instance`` and raises StateConflict when a concurrent
    writer got there first.
    """
    model = type(instance)
    version = instance.version if expected_version is None else expected_version
    if any(f.name == 'updated_at' for f in model._meta.concrete_fields):
        changes.setdefault('updated_at', timezone.now())
    updated = model.objects.filter(pk=instance.pk, version=version).update(
        version=F('version') + 1, **changes
    )
    if updated != 1:
        logger.warning(f"Compare-and-set lost for {model.__name__} {instance.pk} at version {version}")
        raise StateConflict(
            f"{model.__name__} {instance.pk} was modified concurrently, reload and retry",
            expected_version=version,
        )
    instance.refresh_from_db()
    return instance
