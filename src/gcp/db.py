import os
import firebase_admin
from firebase_admin import credentials
from google.cloud import firestore
from google.oauth2 import service_account

from logger import logger
from config.config import settings

SERVICE_ACCOUNT_KEY_FILE_PATH = os.getenv('GCP_SERVICE_ACCOUNT_KEY_FILE', 'secrets/bc-subleasing-service-account.json')


def service_account_credentials():
    """Credentials from the service account key file, or None to use application default credentials"""
    if os.path.exists(SERVICE_ACCOUNT_KEY_FILE_PATH):
        return service_account.Credentials.from_service_account_file(SERVICE_ACCOUNT_KEY_FILE_PATH)
    return None


def get_firebase_app() -> firebase_admin.App:
    try:
        return firebase_admin.get_app()
    except ValueError:
        logger.info("[GCP_DB] Initializing Firebase Admin...")
        cred = credentials.Certificate(SERVICE_ACCOUNT_KEY_FILE_PATH) \
            if os.path.exists(SERVICE_ACCOUNT_KEY_FILE_PATH) \
            else None
        return firebase_admin.initialize_app(
            credential=cred,
            options={
                'projectId': settings.GCP.PROJECT_ID,
                'storageBucket': settings.GCP.Storage.LISTINGS_BUCKET,
            })


class DBManager():

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance.setup_db()
        return cls._instance

    def setup_db(self):
        logger.info(f"[GCP_DB] Connecting to Firestore project '{settings.GCP.PROJECT_ID}', database '{settings.GCP.Firestore.DB}'")
        try:
            get_firebase_app()
            cred = service_account_credentials()
            logger.info(f"[GCP_DB] Using credentials: {'service account file' if cred else 'default credentials'}")
            self.db_client = firestore.Client(
                project=settings.GCP.PROJECT_ID,
                database=settings.GCP.Firestore.DB,
                credentials=cred)
        except Exception as e:
            logger.exception(f"[GCP_DB] Failed to connect to Firestore DB for project {settings.GCP.PROJECT_ID}")
            raise e

    def get_db_client(self):
        return self.db_client


class LazyDBClient:
    """Defers creating the Firestore client until first use"""

    def __getattr__(self, name):
        return getattr(DBManager().get_db_client(), name)

    def __bool__(self):
        return True

db_client = LazyDBClient()
