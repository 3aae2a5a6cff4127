import io

from fastapi import FastAPI, APIRouter, HTTPException, Request, status, Path, Depends, Form, File, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from PIL import Image, UnidentifiedImageError

from logger import logger
from config.config import settings
from account.authentication import authenticate, sign_out
from account.account_model import UserSession, SignOutResponse
from listing.listing_actions import ListingActionsHandler
from listing.listing_actions_model import *

app = FastAPI()

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.Authentication.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(RequestValidationError)
async def request_validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.exception(exc)
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": str(exc)}
    )

@app.exception_handler(ValidationError)
async def validation_exception_handler(request: Request, exc: ValidationError):
    logger.exception(exc)
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": str(exc)}
    )

@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    logger.warning(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail}
    )

@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.exception(exc)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": str(exc)}
    )

@app.get("/")
async def read_root():
    return {"message": "Welcome to the Sublease Listings API"}

v1_router = APIRouter(prefix="/api/v1")


def decode_photos(photos: list[UploadFile]) -> list[Image.Image]:
    """Decode uploaded files into images, skipping any file that isn't a readable image"""
    if len(photos) > settings.Photos.MAX_PHOTOS_PER_UPLOAD:
        raise HTTPException(
            status_code=422,
            detail=f"At most {settings.Photos.MAX_PHOTOS_PER_UPLOAD} photos can be uploaded at once")

    images = []
    for photo in photos:
        try:
            image = Image.open(io.BytesIO(photo.file.read()))
            image.load()
            images.append(image)
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
            logger.warning(f"Skipping upload '{photo.filename}', not an image: {e}")
    return images


def save_response(save_result: SaveListingResult, message: str) -> SaveListingResponse:
    if not save_result.result.succeeded:
        status_code = 422 if save_result.failed_step == 'geocode' else 500
        raise HTTPException(status_code=status_code, detail=save_result.result.reason)
    return SaveListingResponse(
        message=message,
        listing=ListingDetails.from_listing(save_result.listing),
        photos=save_result.photos)


##############
# ACCOUNT APIs
##############

@v1_router.post('/sign-out', response_model=SignOutResponse)
async def sign_out_user(session: UserSession = Depends(authenticate)):
    signed_out = await run_in_threadpool(sign_out, session)
    return SignOutResponse(
        message="Signed out" if signed_out else "Could not sign out",
        signed_out=signed_out)

##############
# LISTING APIs
##############

@v1_router.get('/listings', response_model=FetchListingsResponse)
async def fetch_listings(session: UserSession = Depends(authenticate)):
    listings = await run_in_threadpool(ListingActionsHandler(session).fetch_listings)
    return FetchListingsResponse(
        message="Listings fetched!",
        listings=[ListingDetails.from_listing(listing) for listing in listings])

@v1_router.get('/listings/mine', response_model=FetchListingsResponse)
async def fetch_my_listings(session: UserSession = Depends(authenticate)):
    listings = await run_in_threadpool(ListingActionsHandler(session).fetch_my_listings)
    return FetchListingsResponse(
        message="Listings fetched!",
        listings=[ListingDetails.from_listing(listing) for listing in listings])

@v1_router.get('/listings/{listing_id}', response_model=FetchListingResponse)
async def fetch_listing(
    listing_id: str = Path(..., description="ID of the listing"),
    session: UserSession = Depends(authenticate)):
    listing = await run_in_threadpool(ListingActionsHandler(session).fetch_listing, listing_id)
    return FetchListingResponse(message="Listing fetched!", listing=ListingDetails.from_listing(listing))

@v1_router.get('/listings/{listing_id}/photos', response_model=FetchPhotosResponse)
async def fetch_listing_photos(
    listing_id: str = Path(..., description="ID of the listing"),
    session: UserSession = Depends(authenticate)):
    photos = await run_in_threadpool(ListingActionsHandler(session).fetch_photos, listing_id)
    return FetchPhotosResponse(message="Photos fetched!", photos=photos)

@v1_router.post('/listings', response_model=SaveListingResponse, status_code=status.HTTP_201_CREATED)
async def create_listing(
    listing: str = Form(..., description="Listing fields as JSON"),
    photos: list[UploadFile] = File(default=[]),
    session: UserSession = Depends(authenticate)):
    form = ListingForm.model_validate_json(listing)
    images = await run_in_threadpool(decode_photos, photos)
    save_result = await run_in_threadpool(
        ListingActionsHandler(session).create_listing, form.to_listing(), images)
    return save_response(save_result, "Listing created!")

@v1_router.put('/listings/{listing_id}', response_model=SaveListingResponse)
async def update_listing(
    listing_id: str = Path(..., description="ID of the listing"),
    listing: str = Form(..., description="Listing fields as JSON"),
    photos: list[UploadFile] = File(default=[]),
    session: UserSession = Depends(authenticate)):
    form = ListingForm.model_validate_json(listing)
    images = await run_in_threadpool(decode_photos, photos)
    save_result = await run_in_threadpool(
        ListingActionsHandler(session).update_listing, listing_id, form, images)
    return save_response(save_result, "Listing updated!")

@v1_router.delete('/listings/{listing_id}/photos', response_model=SaveListingResponse)
async def remove_listing_photo(
    request: RemovePhotoRequest,
    listing_id: str = Path(..., description="ID of the listing"),
    session: UserSession = Depends(authenticate)):
    save_result = await run_in_threadpool(
        ListingActionsHandler(session).remove_photo, listing_id, request.photo_url)
    return save_response(save_result, "Photo removed!")

@v1_router.delete('/listings/{listing_id}', response_model=DeleteListingResponse)
async def delete_listing(
    listing_id: str = Path(..., description="ID of the listing"),
    session: UserSession = Depends(authenticate)):
    result = await run_in_threadpool(ListingActionsHandler(session).delete_listing, listing_id)
    if not result.succeeded:
        raise HTTPException(status_code=500, detail=result.reason)
    return DeleteListingResponse(message="Listing deleted!", listing_id=listing_id)

app.include_router(v1_router)
