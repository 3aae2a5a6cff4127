import io
import re
import uuid
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Optional

from PIL import Image
from pydantic import BaseModel, Field, ConfigDict

from logger import logger
from config.config import settings
from account.account_model import UserSession
from gcp.storage import StorageManager
from gcp.storage_model import CloudPath
from listing.listing_model import Listing

PHOTO_INDEX_PATTERN = re.compile(r'photo(\d+)\.jpg')


class PhotoUploadResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    index: int = Field(..., description='Position of the image in the submitted batch')
    url: Optional[str] = Field(default=None, description='Download URL when the upload succeeded')
    reason: Optional[str] = Field(default=None, description='Why the image was dropped')

    @property
    def ok(self) -> bool:
        return self.url is not None


class PhotoPipeline:
    """
    Turns images picked by a user into stored JPEGs with public download URLs.

    Each image is handled on its own: a failure to encode, upload or resolve the URL
    of one image is reported in its result and does not affect the others.
    """

    def __init__(self, storage_manager: StorageManager = None):
        self._storage_manager = storage_manager

    @property
    def storage(self) -> StorageManager:
        if self._storage_manager is None:
            self._storage_manager = StorageManager()
        return self._storage_manager

    @staticmethod
    def encode(image: Image.Image) -> bytes:
        if image.mode != 'RGB':
            image = image.convert('RGB')
        buffer = io.BytesIO()
        image.save(buffer, format='JPEG', quality=settings.Photos.JPEG_QUALITY)
        return buffer.getvalue()

    def _upload_one(self, image: Image.Image, listing_id: str, index: int, session: UserSession) -> PhotoUploadResult:
        try:
            data = self.encode(image)
        except Exception as e:
            logger.warning(f"[PHOTO_PIPELINE] Could not encode image {index} for listing '{listing_id}': {e}")
            return PhotoUploadResult(index=index, reason=f"encode failed: {e}")

        cloud_path = CloudPath.for_listing_photo(listing_id, index)
        try:
            self.storage.upload_bytes(
                data,
                cloud_path,
                content_type=settings.Photos.CONTENT_TYPE,
                metadata={'uploadedBy': session.user_id})
        except Exception as e:
            logger.warning(f"[PHOTO_PIPELINE] Upload to {cloud_path.full_path()} failed: {e}")
            return PhotoUploadResult(index=index, reason=f"upload failed: {e}")

        try:
            url = self.storage.download_url(cloud_path)
        except Exception as e:
            logger.warning(f"[PHOTO_PIPELINE] No download URL for {cloud_path.full_path()}: {e}")
            return PhotoUploadResult(index=index, reason=f"download URL failed: {e}")

        return PhotoUploadResult(index=index, url=url)

    def upload_photos(self, images: list[Image.Image], listing_id: Optional[str], session: UserSession, start_index: int = 0) -> list[PhotoUploadResult]:
        """
        Upload a batch of images to ``locations/<listing_id>/photo<index>.jpg``.

        Args:
            images: Decoded images in the order the user picked them
            listing_id: ID of the owning listing, a placeholder ID is generated when None
            session: Session of the uploading user
            start_index: Index used for the first image of the batch

        Returns:
            One result per image, in input order
        """
        if not images:
            return []

        if not listing_id:
            listing_id = str(uuid.uuid4())
            logger.info(f"[PHOTO_PIPELINE] Listing not saved yet, uploading under placeholder ID '{listing_id}'")

        max_workers = min(settings.Photos.MAX_CONCURRENT_UPLOADS, len(images))
        logger.info(f"[PHOTO_PIPELINE] Uploading {len(images)} photos for listing '{listing_id}' with {max_workers} workers")

        results = []
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = [
                executor.submit(self._upload_one, image, listing_id, start_index + offset, session)
                for offset, image in enumerate(images)
            ]
            for future in as_completed(futures):
                results.append(future.result())

        results.sort(key=lambda result: result.index)
        failed = [result for result in results if not result.ok]
        if failed:
            logger.warning(f"[PHOTO_PIPELINE] {len(failed)} of {len(results)} photos dropped for listing '{listing_id}'")
        else:
            logger.success(f"[PHOTO_PIPELINE] Uploaded {len(results)} photos for listing '{listing_id}'")
        return results

    @staticmethod
    def successful_urls(results: list[PhotoUploadResult]) -> list[str]:
        return [result.url for result in results if result.ok]

    @staticmethod
    def next_photo_index(listing: Listing) -> int:
        """One past the highest photo index referenced by the listing, so new uploads never overwrite them"""
        indices = []
        for url in listing.photo_urls:
            try:
                name = CloudPath.from_download_url(url).path.name
            except ValueError:
                continue
            match = PHOTO_INDEX_PATTERN.fullmatch(name)
            if match:
                indices.append(int(match.group(1)))
        return max(indices) + 1 if indices else 0

    def delete_photo_blob(self, url: str) -> bool:
        """
        Delete the stored object behind a photo URL, when it points into the listings bucket.
        Best effort: failures are logged and reported as False.
        """
        try:
            cloud_path = CloudPath.from_download_url(url)
        except ValueError:
            logger.info(f"[PHOTO_PIPELINE] Photo {url} is not stored by us, nothing to delete")
            return False

        if cloud_path.bucket_id != settings.GCP.Storage.LISTINGS_BUCKET:
            logger.info(f"[PHOTO_PIPELINE] Photo {url} lives in another bucket, leaving it")
            return False

        try:
            return self.storage.delete_blob(cloud_path)
        except Exception as e:
            logger.error(f"[PHOTO_PIPELINE] Could not delete {cloud_path.full_path()}: {e}")
            return False
