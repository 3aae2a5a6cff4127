import os
from google.cloud import secretmanager
from google.api_core.exceptions import NotFound

from config.config import settings
from logger import logger
from gcp.db import service_account_credentials

class SecretManager():

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance.init()
        return cls._instance

    def init(self):
        logger.info("[SECRET_MANAGER] Initializing Google Cloud Secret Manager...")
        self.client = secretmanager.SecretManagerServiceClient(credentials=service_account_credentials())

    def secret(self, secret_id, version_id="latest"):
        """
        Accesses the payload of the specified secret version.

        Args:
            secret_id (str): The ID of the secret.
            version_id (str): The version of the secret (default: "latest").

        Returns:
            str: The secret payload as a string, None if it can't be read.
        """
        name = f"projects/{settings.GCP.PROJECT_ID}/secrets/{secret_id}/versions/{version_id}"

        try:
            response = self.client.access_secret_version(request={"name": name})
            return response.payload.data.decode("UTF-8")
        except NotFound:
            logger.error(f"Secret {secret_id} with version {version_id} not found.")
            return None
        except Exception as e:
            logger.error(f"An error occurred: {e}")
            return None


class LazySecretManager:
    """Reads secrets from Secret Manager when enabled, from the environment otherwise"""

    def secret(self, secret_id, version_id="latest"):
        if settings.FeatureFlags.ENABLE_SECRET_MANAGER:
            value = SecretManager().secret(secret_id, version_id)
            if value:
                return value
            logger.warning(f"[SECRET_MANAGER] Falling back to environment variable for: {secret_id}")

        env_value = os.getenv(secret_id)
        if not env_value:
            logger.warning(f"[SECRET_MANAGER] No environment variable found for: {secret_id}")
        return env_value

secret_mgr = LazySecretManager()
