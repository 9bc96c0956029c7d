"""
Application configuration: read once from the environment at import.
"""

import logging
import os

DATA_DIR = os.getenv("DATA_DIR", os.path.join(os.getcwd(), "data"))
DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_NAME = os.getenv("DATABASE_NAME")

PORT = int(os.getenv("PORT", "3000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# "0" turns off per-collection locking (reproduces the unguarded read/write race)
SERIALIZE_WRITES = os.getenv("SERIALIZE_WRITES", "1") == "1"
SEED_DATA = os.getenv("SEED_DATA", "1") == "1"

PASSWORD_ITERATIONS = int(os.getenv("PASSWORD_ITERATIONS", "120000"))

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str = LOG_LEVEL):
    logging.basicConfig(level=level, format=LOG_FORMAT)
