"""SQLAlchemy models package.

Importing the models here ensures that SQLAlchemy's mapper registry is
populated before ``Base.metadata.create_all()`` runs.

Usage from other modules:
    from app.models import DatasetSnapshot
"""

from app.models.dataset_snapshot import DatasetSnapshot  # noqa: F401
