from fastapi import HTTPException
from PIL import Image

from logger import logger
from config.config import settings
from utils.common_models import ActionStatus
from account.account_model import UserSession
from listing.listing_model import Listing, Photo
from listing.listing_repository import ListingRepository
from listing.photo_pipeline import PhotoPipeline, PhotoUploadResult
from listing.geocoder import Geocoder, GeocodingError
from listing.listing_actions_model import ListingForm, SaveListingResult


class ListingActionsHandler:
    """
    Listing flows on behalf of one signed in user.

    Saving runs geocode -> photo upload -> document write, in that order, so a failure to
    resolve the address leaves the store and the bucket untouched. Nothing is retried.
    """

    def __init__(self, session: UserSession, repository: ListingRepository = None,
                 photo_pipeline: PhotoPipeline = None, geocoder: Geocoder = None):
        self.session = session
        self.repository = repository or ListingRepository()
        self.photo_pipeline = photo_pipeline or PhotoPipeline()
        self.geocoder = geocoder or Geocoder()

    def _failure(self, listing: Listing, step: str, reason: str, photos: list[PhotoUploadResult] = None) -> SaveListingResult:
        logger.error(f"[LISTING_ACTIONS] {step} failed for listing '{listing.id}' of user '{self.session.user_id}': {reason}")
        return SaveListingResult(
            listing=listing,
            result=ActionStatus.failure(reason),
            failed_step=step,
            photos=photos or [])

    def _owned_listing(self, listing_id: str) -> Listing:
        listing = self.repository.get(listing_id)
        if listing is None:
            raise HTTPException(status_code=404, detail=f"Listing with ID '{listing_id}' not found")
        if listing.owner_id != self.session.user_id:
            logger.warning(f"[LISTING_ACTIONS] User '{self.session.user_id}' tried to modify listing '{listing_id}' of '{listing.owner_id}'")
            raise HTTPException(status_code=403, detail=f"Listing with ID '{listing_id}' belongs to another user")
        return listing

    ###########
    # Queries
    ###########

    def fetch_listings(self) -> list[Listing]:
        return self.repository.list()

    def fetch_my_listings(self) -> list[Listing]:
        return self.repository.list_by_owner(self.session.user_id)

    def fetch_listing(self, listing_id: str) -> Listing:
        listing = self.repository.get(listing_id)
        if listing is None:
            raise HTTPException(status_code=404, detail=f"Listing with ID '{listing_id}' not found")
        return listing

    def fetch_photos(self, listing_id: str) -> list[Photo]:
        self.fetch_listing(listing_id)
        return self.repository.list_photos(listing_id)

    ###########
    # Mutations
    ###########

    def create_listing(self, listing: Listing, images: list[Image.Image]) -> SaveListingResult:
        logger.info(f"[LISTING_ACTIONS] Creating listing at '{listing.address}' for user '{self.session.user_id}' with {len(images)} photos")
        listing.owner_id = self.session.user_id

        try:
            coordinate = self.geocoder.geocode(listing.address)
        except GeocodingError as e:
            return self._failure(listing, 'geocode', str(e))
        if coordinate:
            listing.set_coordinate(coordinate)

        # Photos are stored under the listing's own ID, so it is reserved before uploading
        if listing.id is None:
            listing.assign_id(self.repository.new_document_id())

        photos = self.photo_pipeline.upload_photos(images, listing.id, self.session)
        listing.append_photo_urls(PhotoPipeline.successful_urls(photos))

        if not self.repository.save(listing, self.session):
            return self._failure(listing, 'save', "Error saving listing", photos)

        logger.success(f"[LISTING_ACTIONS] Listing '{listing.id}' created")
        return SaveListingResult(listing=listing, result=ActionStatus.success(), photos=photos)

    def update_listing(self, listing_id: str, form: ListingForm, images: list[Image.Image]) -> SaveListingResult:
        stored = self._owned_listing(listing_id)
        listing = form.apply_to(stored)
        logger.info(f"[LISTING_ACTIONS] Updating listing '{listing_id}' with {len(images)} new photos")

        if listing.address != stored.address:
            try:
                coordinate = self.geocoder.geocode(listing.address)
            except GeocodingError as e:
                return self._failure(listing, 'geocode', str(e))
            if coordinate:
                listing.set_coordinate(coordinate)

        photos = self.photo_pipeline.upload_photos(
            images, listing.id, self.session, start_index=PhotoPipeline.next_photo_index(listing))
        listing.append_photo_urls(PhotoPipeline.successful_urls(photos))

        if not self.repository.save(listing, self.session):
            return self._failure(listing, 'save', "Error saving listing", photos)

        return SaveListingResult(listing=listing, result=ActionStatus.success(), photos=photos)

    def remove_photo(self, listing_id: str, photo_url: str) -> SaveListingResult:
        listing = self._owned_listing(listing_id)
        if not listing.remove_photo_url(photo_url):
            raise HTTPException(status_code=404, detail=f"Listing '{listing_id}' has no such photo")

        if not self.repository.save(listing, self.session):
            return self._failure(listing, 'save', "Error saving listing")

        if settings.Photos.DELETE_REMOVED_PHOTO_BLOBS:
            self.photo_pipeline.delete_photo_blob(photo_url)

        return SaveListingResult(listing=listing, result=ActionStatus.success())

    def delete_listing(self, listing_id: str) -> ActionStatus:
        listing = self._owned_listing(listing_id)
        if not self.repository.delete(listing):
            logger.error(f"[LISTING_ACTIONS] Error deleting listing '{listing_id}'")
            return ActionStatus.failure("Error deleting listing")
        return ActionStatus.success()
