from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt


class Coordinate(BaseModel):
    latitude: float = 0.0
    longitude: float = 0.0


class Listing(BaseModel):
    """
    One sublease posting, stored as a document of the listings collection.

    Python attribute names are snake case; the aliases are the field names used by
    the stored documents and must stay as they are for existing data to load.
    """
    model_config = ConfigDict(populate_by_name=True, validate_assignment=True)

    id: Optional[str] = Field(default=None, exclude=True, description='Document ID, assigned by the store on first save')
    owner_id: str = Field(default='', alias='userID', description='UID of the user who created the listing')
    name: str = Field(default='', description='Display name of the poster')
    address: str = Field(default='', description='Street, City, Zipcode')
    email: str = Field(default='', description='Contact email')
    phone: str = Field(default='', description='Contact phone')
    price: float = Field(default=500.0, alias='numberValue', description='Monthly asking price')
    negotiate: bool = Field(default=False, description='Willing to negotiate on price')
    parking: bool = Field(default=False, description='Parking available')
    bedrooms: NonNegativeInt = Field(default=0, alias='number_of_bedrooms', description='Number of bedrooms')
    amenities: str = Field(default='', alias='ammenities', description='Free text amenities notes')
    latitude: float = 0.0
    longitude: float = 0.0
    photo_urls: list[str] = Field(default_factory=list, alias='photoURLs', description='Photo download URLs in upload order')

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(latitude=self.latitude, longitude=self.longitude)

    @property
    def is_persisted(self) -> bool:
        return self.id is not None

    def assign_id(self, listing_id: str) -> None:
        if self.id is not None and self.id != listing_id:
            raise ValueError(f"Listing '{self.id}' cannot be re-assigned to '{listing_id}'")
        self.id = listing_id

    def set_coordinate(self, coordinate: Coordinate) -> None:
        self.latitude = coordinate.latitude
        self.longitude = coordinate.longitude

    def append_photo_urls(self, urls: list[str]) -> None:
        self.photo_urls = [*self.photo_urls, *urls]

    def remove_photo_url(self, url: str) -> bool:
        if url not in self.photo_urls:
            return False
        photo_urls = list(self.photo_urls)
        photo_urls.remove(url)
        self.photo_urls = photo_urls
        return True

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)

    @classmethod
    def from_document(cls, listing_id: str, data: Optional[dict]) -> 'Listing':
        listing = cls.model_validate(data or {})
        listing.assign_id(listing_id)
        return listing

    @classmethod
    def from_snapshot(cls, snapshot) -> 'Listing':
        return cls.from_document(snapshot.id, snapshot.to_dict())


class Photo(BaseModel):
    """Photo metadata kept in the photos subcollection of a listing, read only here"""
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    image_url: str = Field(default='', alias='imageURLString')
    description: str = ''
    reviewer: str = ''
    posted_on: Optional[datetime] = Field(default=None, alias='postedOn')

    @classmethod
    def from_snapshot(cls, snapshot) -> 'Photo':
        photo = cls.model_validate(snapshot.to_dict() or {})
        photo.id = snapshot.id
        return photo
