import pytest
from pydantic import ValidationError

from listing.listing_model import Listing, Photo, Coordinate

DOCUMENT_FIELDS = {
    "userID", "name", "address", "email", "phone", "numberValue", "negotiate",
    "parking", "number_of_bedrooms", "ammenities", "latitude", "longitude", "photoURLs",
}


def test_new_listing_defaults():
    listing = Listing()

    assert listing.id is None
    assert not listing.is_persisted
    assert listing.owner_id == ""
    assert listing.price == 500.0
    assert listing.bedrooms == 0
    assert (listing.latitude, listing.longitude) == (0.0, 0.0)
    assert listing.photo_urls == []


def test_document_uses_stored_field_names_and_omits_id():
    listing = Listing(id="abc", owner_id="u1", price=1200, bedrooms=3, amenities="Wifi", photo_urls=["u"])

    document = listing.to_document()

    assert set(document) == DOCUMENT_FIELDS
    assert document["numberValue"] == 1200.0
    assert document["number_of_bedrooms"] == 3
    assert document["ammenities"] == "Wifi"
    assert document["userID"] == "u1"
    assert document["photoURLs"] == ["u"]


def test_from_document_reads_stored_field_names():
    listing = Listing.from_document("doc-1", {
        "userID": "u1",
        "address": "140 Commonwealth Ave, Chestnut Hill, MA 02467",
        "numberValue": 950,
        "number_of_bedrooms": 2,
        "ammenities": "Laundry",
        "latitude": 42.33,
        "longitude": -71.17,
        "photoURLs": ["a", "b"],
    })

    assert listing.id == "doc-1"
    assert listing.owner_id == "u1"
    assert listing.price == 950.0
    assert listing.bedrooms == 2
    assert listing.amenities == "Laundry"
    assert listing.photo_urls == ["a", "b"]


def test_coordinate_is_derived_from_latitude_and_longitude():
    listing = Listing(latitude=42.3355, longitude=-71.1685)

    assert listing.coordinate == Coordinate(latitude=42.3355, longitude=-71.1685)
    assert "coordinate" not in listing.to_document()

    listing.set_coordinate(Coordinate(latitude=1.5, longitude=2.5))
    assert (listing.latitude, listing.longitude) == (1.5, 2.5)


def test_identifier_cannot_be_reassigned():
    listing = Listing()
    listing.assign_id("first")
    listing.assign_id("first")

    with pytest.raises(ValueError):
        listing.assign_id("second")
    assert listing.id == "first"


def test_bedrooms_must_not_be_negative():
    with pytest.raises(ValidationError):
        Listing(bedrooms=-1)

    listing = Listing()
    with pytest.raises(ValidationError):
        listing.bedrooms = -2


def test_photo_urls_grow_by_append_and_shrink_by_removal():
    listing = Listing(photo_urls=["a"])

    listing.append_photo_urls(["b", "c"])
    assert listing.photo_urls == ["a", "b", "c"]

    assert listing.remove_photo_url("b") is True
    assert listing.photo_urls == ["a", "c"]
    assert listing.remove_photo_url("missing") is False
    assert listing.photo_urls == ["a", "c"]


def test_photo_from_snapshot():
    class Snapshot:
        id = "p1"

        def to_dict(self):
            return {"imageURLString": "https://img", "description": "Kitchen", "reviewer": "a@bc.edu"}

    photo = Photo.from_snapshot(Snapshot())

    assert photo.id == "p1"
    assert photo.image_url == "https://img"
    assert photo.description == "Kitchen"
    assert photo.posted_on is None
