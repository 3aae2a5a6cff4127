import threading
from typing import Callable, Iterator, List, Optional

from google.cloud.firestore_v1.base_query import FieldFilter
from pydantic import ValidationError

from logger import logger
from config.config import settings
from gcp.db import db_client
from account.account_model import UserSession
from listing.listing_model import Listing, Photo

SnapshotCallback = Callable[[List[Listing]], None]


def _decode_listings(snapshots) -> List[Listing]:
    listings = []
    for snapshot in snapshots:
        try:
            listings.append(Listing.from_snapshot(snapshot))
        except ValidationError as e:
            logger.error(f"[LISTING_REPO] Skipping malformed listing '{snapshot.id}': {e}")
    return listings


class ListingSubscription:
    """
    Live view over a listings query. Every change in the store delivers the full,
    current result set, either to the callback or to whoever iterates the handle.
    The handle keeps a watch open on the store until ``close()`` is called.

    Only the newest undelivered snapshot is held for iteration: a slow (or absent)
    consumer skips intermediate snapshots, each of which is a full result set anyway.
    """

    def __init__(self, query, on_change: Optional[SnapshotCallback] = None):
        self._on_change = on_change
        self._condition = threading.Condition()
        self._pending: Optional[List[Listing]] = None
        self._closed = threading.Event()
        self.latest: Optional[List[Listing]] = None
        self._watch = query.on_snapshot(self._on_snapshot)

    def _on_snapshot(self, docs, changes, read_time):
        if self._closed.is_set():
            return
        listings = _decode_listings(docs)
        self.latest = listings
        logger.debug(f"[LISTING_REPO] Snapshot with {len(listings)} listings at {read_time}")
        if self._on_change:
            try:
                self._on_change(listings)
            except Exception as e:
                logger.exception(f"[LISTING_REPO] Snapshot callback failed: {e}")
        with self._condition:
            self._pending = listings
            self._condition.notify_all()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def __iter__(self) -> Iterator[List[Listing]]:
        while True:
            with self._condition:
                self._condition.wait_for(lambda: self._pending is not None or self._closed.is_set())
                if self._pending is None:
                    return
                snapshot, self._pending = self._pending, None
            yield snapshot

    def close(self):
        if self._closed.is_set():
            return
        self._closed.set()
        self._watch.unsubscribe()
        with self._condition:
            self._condition.notify_all()
        logger.info("[LISTING_REPO] Listings subscription closed")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


class ListingRepository:
    """CRUD of listings in the Firestore listings collection"""

    def __init__(self, client=None):
        self.client = client or db_client

    @property
    def collection(self):
        return self.client.collection(settings.GCP.Firestore.LISTINGS_COLLECTION)

    def list(self) -> List[Listing]:
        """All listings, in the order the store reports them"""
        try:
            return _decode_listings(self.collection.stream())
        except Exception as e:
            logger.exception(f"[LISTING_REPO] Failed to list listings: {e}")
            return []

    def list_by_owner(self, owner_id: str) -> List[Listing]:
        try:
            query = self.collection.where(filter=FieldFilter("userID", "==", owner_id))
            return _decode_listings(query.stream())
        except Exception as e:
            logger.exception(f"[LISTING_REPO] Failed to list listings of user '{owner_id}': {e}")
            return []

    def get(self, listing_id: str) -> Optional[Listing]:
        try:
            snapshot = self.collection.document(listing_id).get()
            if not snapshot.exists:
                logger.warning(f"[LISTING_REPO] Listing '{listing_id}' not found")
                return None
            return Listing.from_snapshot(snapshot)
        except Exception as e:
            logger.exception(f"[LISTING_REPO] Failed to fetch listing '{listing_id}': {e}")
            return None

    def list_photos(self, listing_id: str) -> List[Photo]:
        try:
            photos_ref = self.collection.document(listing_id).collection(settings.GCP.Firestore.PHOTOS_SUBCOLLECTION)
            return [Photo.from_snapshot(snapshot) for snapshot in photos_ref.stream()]
        except Exception as e:
            logger.exception(f"[LISTING_REPO] Failed to fetch photos of listing '{listing_id}': {e}")
            return []

    def subscribe(self, on_change: Optional[SnapshotCallback] = None) -> ListingSubscription:
        """Live query over the whole collection. The caller owns the handle and must close it."""
        logger.info("[LISTING_REPO] Opening listings subscription")
        return ListingSubscription(self.collection, on_change=on_change)

    def new_document_id(self) -> str:
        """Store generated ID for a listing that is about to be created. Nothing is written."""
        return self.collection.document().id

    def save(self, listing: Listing, session: UserSession) -> bool:
        """
        Create the listing when it has no ID yet, the store assigns one and it is written
        back to ``listing.id``. A listing holding a reserved ID with no document yet is
        created under that ID. Otherwise overwrite the stored document under the same ID,
        only when the stored owner is the session user.
        """
        try:
            if listing.id is None:
                listing.owner_id = session.user_id
                _, doc_ref = self.collection.add(listing.to_document())
                listing.assign_id(doc_ref.id)
                logger.info(f"[LISTING_REPO] Created listing '{listing.id}' for user '{session.user_id}'")
                return True

            doc_ref = self.collection.document(listing.id)
            snapshot = doc_ref.get()
            if not snapshot.exists:
                listing.owner_id = session.user_id
                doc_ref.set(listing.to_document())
                logger.info(f"[LISTING_REPO] Created listing '{listing.id}' for user '{session.user_id}'")
                return True

            stored_owner = (snapshot.to_dict() or {}).get('userID')
            if stored_owner != session.user_id:
                logger.error(f"[LISTING_REPO] User '{session.user_id}' cannot update listing '{listing.id}' owned by '{stored_owner}'")
                return False

            listing.owner_id = stored_owner
            doc_ref.set(listing.to_document())
            logger.info(f"[LISTING_REPO] Updated listing '{listing.id}'")
            return True
        except Exception as e:
            logger.exception(f"[LISTING_REPO] Failed to save listing '{listing.id}': {e}")
            return False

    def delete(self, listing: Listing) -> bool:
        """Remove the listing document. Photos stored for it are left in the bucket."""
        if listing.id is None:
            logger.warning("[LISTING_REPO] Cannot delete a listing that was never saved")
            return False
        try:
            self.collection.document(listing.id).delete()
            logger.info(f"[LISTING_REPO] Deleted listing '{listing.id}'")
            return True
        except Exception as e:
            logger.exception(f"[LISTING_REPO] Failed to delete listing '{listing.id}': {e}")
            return False
