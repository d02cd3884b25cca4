import os

# Absolute path to project root
basedir = os.path.abspath(os.path.dirname(__file__))

# Runtime only directory (DB, uploads, secrets)
instance_dir = os.path.join(basedir, "instance")


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key")
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///" + os.path.join(instance_dir, "app.db"),
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Course catalog files (CSV + xlsx) picked up by seed_catalog_db.py
    CATALOG_DIR = os.environ.get("CATALOG_DIR", os.path.join(basedir, "data_catalog"))

    # Faculty department-id lookups are cached per user for this many seconds.
    # Writes to departments/faculties do not invalidate the cache.
    DEPARTMENT_CACHE_TTL = int(os.environ.get("DEPARTMENT_CACHE_TTL", "300"))

    DEFAULT_PAGE_SIZE = 20
    MAX_PAGE_SIZE = 100

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret-key"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    LOG_LEVEL = "WARNING"
