import pytest

from config.config import interpolate_config, load_settings, settings


def test_dotted_references_are_resolved():
    config = {
        "GCP": {"PROJECT_ID": "demo", "Storage": {"BUCKET": "${GCP.PROJECT_ID}.appspot.com"}},
        "Paths": {"PHOTOS": "gs://${GCP.Storage.BUCKET}/locations"},
    }

    resolved = interpolate_config(config)

    assert resolved["GCP"]["Storage"]["BUCKET"] == "demo.appspot.com"
    assert resolved["Paths"]["PHOTOS"] == "gs://demo.appspot.com/locations"


def test_circular_reference_is_an_error():
    with pytest.raises(ValueError, match="Circular reference"):
        interpolate_config({"A": {"X": "${B.Y}"}, "B": {"Y": "${A.X}"}})


def test_unknown_reference_is_an_error():
    with pytest.raises(ValueError, match="not found"):
        interpolate_config({"A": "${Missing.KEY}"})


def test_settings_from_custom_file(tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text("General:\n  SERVICE_NAME: demo\n  ORIGINS:\n    - http://localhost\n")

    custom = load_settings(config_file)

    assert custom.General.SERVICE_NAME == "demo"
    assert custom.General.ORIGINS == ["http://localhost"]


def test_missing_file_is_an_error(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_settings(tmp_path / "missing.yaml")


def test_bundled_settings():
    assert settings.GCP.Storage.LISTINGS_BUCKET == f"{settings.GCP.PROJECT_ID}.appspot.com"
    assert settings.Photos.MAX_CONCURRENT_UPLOADS == 10
    assert settings.Photos.JPEG_QUALITY == 80
    assert settings.Listing.MIN_PRICE == 500
    assert settings.Listing.MAX_PRICE == 4500
