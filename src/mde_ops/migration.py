"""
Move gcs-writer output under a versioned prefix.

Upgrading from MDE 1.1.2 to 1.2 moves every gcsoutput* object of the
ingestion bucket into v1/ so later schema changes can write side by side.
"""

import logging
from dataclasses import dataclass

from .platform import StorageClient


logger = logging.getLogger(__name__)

OUTPUT_PREFIX = "gcsoutput"
TARGET_FOLDER = "v1"


def ingestion_bucket(project_id: str) -> str:
    return f"gs://{project_id}-gcs-ingestion"


@dataclass(frozen=True)
class MigrationResult:
    bucket: str
    moved: int

    @property
    def migrated(self) -> bool:
        return self.moved > 0


class GcsWriterMigration:
    """Relocates gcs-writer files of one project."""

    def __init__(self, storage: StorageClient, project_id: str):
        self.storage = storage
        self.bucket = ingestion_bucket(project_id)

    def run(self) -> MigrationResult:
        source = f"{self.bucket}/{OUTPUT_PREFIX}*"
        logger.info(f"Checking for existing files in {self.bucket}")

        objects = self.storage.list_objects(source)
        if not objects:
            logger.info(f"No files in {self.bucket} bucket, no migration necessary.")
            return MigrationResult(bucket=self.bucket, moved=0)

        logger.info(f"Migrating {len(objects)} GCS files to {TARGET_FOLDER} subfolder, this might take some time.")
        self.storage.move(source, f"{self.bucket}/{TARGET_FOLDER}/")
        logger.info("GCS files migration complete")
        return MigrationResult(bucket=self.bucket, moved=len(objects))
