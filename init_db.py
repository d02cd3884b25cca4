import os

from app import app
from config import instance_dir
from extensions import db
import models  # noqa: F401  (registers every table on db.metadata)
from utils.logging import get_logger

logger = get_logger(__name__)

os.makedirs(instance_dir, exist_ok=True)

with app.app_context():
    logger.info("db_init", uri=app.config["SQLALCHEMY_DATABASE_URI"])
    db.create_all()
    logger.info("db_created", tables=sorted(db.metadata.tables))
