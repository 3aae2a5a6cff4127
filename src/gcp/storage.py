import uuid
import argparse
from pathlib import Path

from google.cloud import storage
from google import auth
from google.cloud.storage import Blob

from logger import logger
from config.config import settings
from gcp.db import service_account_credentials
from gcp.storage_model import CloudPath

DOWNLOAD_TOKEN_METADATA_KEY = 'firebaseStorageDownloadTokens'

class StorageManager():

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance.setup()
        return cls._instance

    def setup(self):
        try:
            self.credentials = service_account_credentials()
            if self.credentials is None:
                self.credentials, _ = auth.default()

            self.client = storage.Client(project=settings.GCP.PROJECT_ID, credentials=self.credentials)
        except Exception as e:
            logger.exception(f"Failed to connect to GCP Storage for project {settings.GCP.PROJECT_ID}")
            raise e

    def _blob(self, cloud_path:CloudPath)->Blob:
        return self.client.bucket(cloud_path.bucket_id).blob(str(cloud_path.path))

    def upload_bytes(self, data:bytes, cloud_path:CloudPath, content_type:str, metadata:dict=None)->Blob:
        """
        Upload an in-memory payload, replacing any object already stored at the path.
        A fresh download token is attached so the object gets a new public URL.
        """
        blob = self._blob(cloud_path)
        blob.metadata = {**(metadata or {}), DOWNLOAD_TOKEN_METADATA_KEY: str(uuid.uuid4())}
        blob.upload_from_string(data, content_type=content_type)
        logger.debug(f"[STORAGE] Uploaded {len(data)} bytes to {cloud_path.full_path()}")
        return blob

    def download_url(self, cloud_path:CloudPath)->str:
        """Public download URL of a stored object. Objects without a download token get one."""
        blob = self.client.bucket(cloud_path.bucket_id).get_blob(str(cloud_path.path))
        if blob is None:
            raise FileNotFoundError(f"No object stored at {cloud_path.full_path()}")

        tokens = (blob.metadata or {}).get(DOWNLOAD_TOKEN_METADATA_KEY)
        if not tokens:
            tokens = str(uuid.uuid4())
            blob.metadata = {**(blob.metadata or {}), DOWNLOAD_TOKEN_METADATA_KEY: tokens}
            blob.patch()

        # Several tokens may be stored comma separated, any of them works
        return cloud_path.download_url(token=tokens.split(',')[0])

    def delete_blob(self, cloud_path:CloudPath)->bool:
        blob = self.client.bucket(cloud_path.bucket_id).get_blob(str(cloud_path.path))
        if blob is None:
            logger.warning(f"[STORAGE] Nothing to delete at {cloud_path.full_path()}")
            return False
        blob.delete()
        logger.info(f"[STORAGE] Deleted {cloud_path.full_path()}")
        return True

    def list_blobs_in_path(self, cloud_path:CloudPath)->list[str]:
        """
        List all objects directly under a cloud path.

        Returns:
            List of GCS URLs (gs://bucket/path/file.ext)
        """
        prefix = f"{cloud_path.path}/"
        blobs = self.client.bucket(cloud_path.bucket_id).list_blobs(prefix=prefix, delimiter='/')
        blob_paths = [f'gs://{cloud_path.bucket_id}/{blob.name}' for blob in blobs if not blob.name.endswith('/')]
        logger.debug(f"[STORAGE] Found {len(blob_paths)} blobs in {cloud_path.full_path()}")
        return blob_paths


# For manual checks only
def main():
    parser = argparse.ArgumentParser(description='Listing photo storage')
    parser.add_argument('-l', '--listing_id', required=True, type=str, help='Listing ID')

    action_group = parser.add_mutually_exclusive_group(required=True)
    action_group.add_argument('--list', action='store_true', help='list stored photos of the listing')
    action_group.add_argument('-u', '--upload', type=Path, help='JPEG file to upload as photo0.jpg')

    args = parser.parse_args()

    try:
        manager = StorageManager()
        if args.list:
            for gs_url in manager.list_blobs_in_path(CloudPath.for_listing_folder(args.listing_id)):
                logger.info(gs_url)
        else:
            cloud_path = CloudPath.for_listing_photo(args.listing_id, 0)
            manager.upload_bytes(args.upload.read_bytes(), cloud_path, content_type=settings.Photos.CONTENT_TYPE)
            logger.success(manager.download_url(cloud_path))
    except Exception as e:
        logger.exception(e)

if __name__ == '__main__':
    main()
