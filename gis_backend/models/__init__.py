# models package init
# Ensure ORM models are importable from a single place.
from gis_backend.models.event import Event  # noqa: F401
from gis_backend.models.news import News  # noqa: F401
