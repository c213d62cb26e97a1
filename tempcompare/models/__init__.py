# Import all ORM models here so Alembic's env.py picks up their metadata automatically.
from tempcompare.models.sample import Sample

__all__ = ["Sample"]
