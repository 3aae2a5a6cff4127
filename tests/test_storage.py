from unittest.mock import MagicMock, patch

import pytest

from gcp.storage import StorageManager, DOWNLOAD_TOKEN_METADATA_KEY
from gcp.storage_model import CloudPath


@pytest.fixture
def manager():
    StorageManager._instance = None
    with patch.object(StorageManager, 'setup'):
        manager = StorageManager()
    manager.client = MagicMock()
    yield manager
    StorageManager._instance = None


def test_upload_attaches_download_token(manager):
    cloud_path = CloudPath.for_listing_photo("abc", 0)
    blob = manager.client.bucket.return_value.blob.return_value

    manager.upload_bytes(b"jpeg", cloud_path, content_type="image/jpeg", metadata={"uploadedBy": "user-123"})

    manager.client.bucket.assert_called_with(cloud_path.bucket_id)
    manager.client.bucket.return_value.blob.assert_called_with("locations/abc/photo0.jpg")
    assert blob.metadata["uploadedBy"] == "user-123"
    assert blob.metadata[DOWNLOAD_TOKEN_METADATA_KEY]
    blob.upload_from_string.assert_called_once_with(b"jpeg", content_type="image/jpeg")


def test_download_url_uses_first_stored_token(manager):
    cloud_path = CloudPath.for_listing_photo("abc", 0)
    blob = manager.client.bucket.return_value.get_blob.return_value
    blob.metadata = {DOWNLOAD_TOKEN_METADATA_KEY: "first,second"}

    assert manager.download_url(cloud_path) == cloud_path.download_url("first")
    blob.patch.assert_not_called()


def test_download_url_creates_missing_token(manager):
    blob = manager.client.bucket.return_value.get_blob.return_value
    blob.metadata = None

    url = manager.download_url(CloudPath.for_listing_photo("abc", 0))

    token = blob.metadata[DOWNLOAD_TOKEN_METADATA_KEY]
    assert url.endswith(f"token={token}")
    blob.patch.assert_called_once()


def test_download_url_of_missing_object_fails(manager):
    manager.client.bucket.return_value.get_blob.return_value = None

    with pytest.raises(FileNotFoundError):
        manager.download_url(CloudPath.for_listing_photo("abc", 0))


def test_delete_blob(manager):
    bucket = manager.client.bucket.return_value

    assert manager.delete_blob(CloudPath.for_listing_photo("abc", 0)) is True
    bucket.get_blob.return_value.delete.assert_called_once()

    bucket.get_blob.return_value = None
    assert manager.delete_blob(CloudPath.for_listing_photo("abc", 1)) is False


def test_list_blobs_in_listing_folder(manager):
    folder = CloudPath.for_listing_folder("abc")
    photo, marker = MagicMock(), MagicMock()
    photo.name, marker.name = "locations/abc/photo0.jpg", "locations/abc/"
    manager.client.bucket.return_value.list_blobs.return_value = [photo, marker]

    assert manager.list_blobs_in_path(folder) == [f"gs://{folder.bucket_id}/locations/abc/photo0.jpg"]
    manager.client.bucket.return_value.list_blobs.assert_called_once_with(prefix="locations/abc/", delimiter='/')
