from pydantic import BaseModel, field_serializer
from pathlib import Path
from urllib.parse import urlparse, quote, unquote

from config.config import settings

class CloudPath(BaseModel):
        bucket_id: str
        path: Path

        def full_path(self)->str:
            return f'gs://{self.bucket_id}/{self.path}'

        def download_url(self, token:str)->str:
            """Firebase style public download URL for the object, resolvable by anyone holding the token"""
            encoded = quote(str(self.path), safe='')
            return f'{settings.GCP.Storage.DOWNLOAD_URL_BASE}/{self.bucket_id}/o/{encoded}?alt=media&token={token}'

        @staticmethod
        def for_listing_photo(listing_id:str, index:int)->'CloudPath':
            return CloudPath(
                bucket_id=settings.GCP.Storage.LISTINGS_BUCKET,
                path=Path(f'{settings.GCP.Storage.PHOTO_PATH_PREFIX}/{listing_id}/photo{index}.jpg')
            )

        @staticmethod
        def for_listing_folder(listing_id:str)->'CloudPath':
            return CloudPath(
                bucket_id=settings.GCP.Storage.LISTINGS_BUCKET,
                path=Path(f'{settings.GCP.Storage.PHOTO_PATH_PREFIX}/{listing_id}')
            )

        @staticmethod
        def from_download_url(url:str)->'CloudPath':
            # https://firebasestorage.googleapis.com/v0/b/<bucket>/o/<encoded path>?alt=media&token=...
            parsed_url = urlparse(url)
            parts = parsed_url.path.split('/')
            if len(parts) < 6 or parts[2] != 'b' or parts[4] != 'o':
                raise ValueError(f"Not a storage download URL: {url}")

            return CloudPath(bucket_id=parts[3], path=Path(unquote('/'.join(parts[5:]))))

        @field_serializer('path')
        def serialize_path(self, path: Path) -> str:
            return str(path)
