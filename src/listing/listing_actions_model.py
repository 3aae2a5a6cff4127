from typing import Optional, Literal

from pydantic import BaseModel, Field

from config.config import settings
from utils.common_models import ActionStatus
from listing.listing_model import Listing, Coordinate, Photo
from listing.photo_pipeline import PhotoUploadResult


class ListingForm(BaseModel):
    """Editable fields of a listing, with the ranges the listing editor allows"""
    name: str = ''
    address: str = Field(..., min_length=1, description='Street, City, Zipcode')
    email: str = ''
    phone: str = ''
    price: float = Field(
        default=float(settings.Listing.MIN_PRICE), ge=settings.Listing.MIN_PRICE, le=settings.Listing.MAX_PRICE,
        description='Monthly asking price')
    negotiate: bool = False
    parking: bool = False
    bedrooms: int = Field(default=0, ge=0, le=settings.Listing.MAX_BEDROOMS)
    amenities: str = Field(default='', description='Laundry Service, Wifi, Other Notes')

    def to_listing(self) -> Listing:
        return Listing(**self.model_dump())

    def apply_to(self, listing: Listing) -> Listing:
        """Copy of the listing with the form's fields, identity and photos untouched"""
        return listing.model_copy(update=self.model_dump())


class SaveListingResult(BaseModel):
    listing: Listing
    result: ActionStatus
    failed_step: Optional[Literal['geocode', 'save']] = Field(
        default=None, description='Step of the flow that failed, if any')
    photos: list[PhotoUploadResult] = Field(default_factory=list, description='Outcome of each submitted photo')


class ListingDetails(BaseModel):
    id: str
    listing: Listing
    coordinate: Coordinate

    @classmethod
    def from_listing(cls, listing: Listing) -> 'ListingDetails':
        return cls(id=listing.id, listing=listing, coordinate=listing.coordinate)


class FetchListingsResponse(BaseModel):
    message: str
    listings: list[ListingDetails]


class FetchListingResponse(BaseModel):
    message: str
    listing: ListingDetails


class FetchPhotosResponse(BaseModel):
    message: str
    photos: list[Photo]


class SaveListingResponse(BaseModel):
    message: str
    listing: ListingDetails
    photos: list[PhotoUploadResult]


class RemovePhotoRequest(BaseModel):
    photo_url: str = Field(..., description='Download URL of the photo to remove')


class DeleteListingResponse(BaseModel):
    message: str
    listing_id: str
