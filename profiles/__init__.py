"""Administrator-defined custom profile fields for users and groups."""


def get_service():
    """Return the process-wide `ProfileService` built by `ProfilesConfig.ready()`."""
    from django.apps import apps

    return apps.get_app_config("profiles").service
