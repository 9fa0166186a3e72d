"""
Firebase Admin SDK access.

Used by the maintenance management commands only; application state lives
in the Django database.

Settings:
    COUPIN = {
        "FIREBASE_CREDENTIALS": "/etc/secrets/service-account.json",  # "" = ADC
        "FIREBASE_PROJECT_ID": "coupin-prod",
        "FIREBASE_STORAGE_BUCKET": "coupin-prod.appspot.com",
        "FIRESTORE_BATCH_SIZE": 400,
    }
"""

import logging

import firebase_admin
from firebase_admin import credentials, firestore, storage

logger = logging.getLogger(__name__)


def get_app() -> firebase_admin.App:
    """Default Firebase app, initialized on first use."""
    from coupin.conf import coupin_settings

    try:
        return firebase_admin.get_app()
    except ValueError:
        pass

    options = {}
    if coupin_settings.FIREBASE_PROJECT_ID:
        options["projectId"] = coupin_settings.FIREBASE_PROJECT_ID
    if coupin_settings.FIREBASE_STORAGE_BUCKET:
        options["storageBucket"] = coupin_settings.FIREBASE_STORAGE_BUCKET

    if coupin_settings.FIREBASE_CREDENTIALS:
        cred = credentials.Certificate(coupin_settings.FIREBASE_CREDENTIALS)
        logger.info("Initializing Firebase with service account credentials")
    else:
        cred = credentials.ApplicationDefault()
        logger.info("Initializing Firebase with application default credentials")

    return firebase_admin.initialize_app(cred, options or None)


def firestore_client():
    return firestore.client(app=get_app())


def storage_bucket(name: str | None = None):
    return storage.bucket(name or None, app=get_app())


class BatchWriter:
    """
    Groups Firestore writes into batches.

    Commits every ``batch_size`` operations (Firestore caps a batch at 500)
    and once more on exit. In dry-run mode operations are only counted.

    Usage:
        with BatchWriter(db, dry_run=not execute) as writer:
            for doc in db.collection("customers").stream():
                writer.update(doc.reference, {"phone": "+27832091122"})
        writer.operations  # total queued
    """

    def __init__(self, db, batch_size: int | None = None, dry_run: bool = False):
        if batch_size is None:
            from coupin.conf import coupin_settings

            batch_size = coupin_settings.FIRESTORE_BATCH_SIZE

        self.db = db
        self.batch_size = batch_size
        self.dry_run = dry_run
        self.operations = 0
        self.commits = 0
        self._pending = 0
        self._batch = None if dry_run else db.batch()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is None:
            self.commit()
        return False

    def set(self, ref, data: dict, merge: bool = False):
        if not self.dry_run:
            self._batch.set(ref, data, merge=merge)
        self._queued()

    def update(self, ref, data: dict):
        if not self.dry_run:
            self._batch.update(ref, data)
        self._queued()

    def delete(self, ref):
        if not self.dry_run:
            self._batch.delete(ref)
        self._queued()

    def commit(self):
        """Commit pending operations, if any."""
        if not self._pending or self.dry_run:
            self._pending = 0
            return
        self._batch.commit()
        self.commits += 1
        logger.debug("Committed Firestore batch of %d operations", self._pending)
        self._pending = 0
        self._batch = self.db.batch()

    def _queued(self):
        self.operations += 1
        self._pending += 1
        if self._pending >= self.batch_size:
            self.commit()
