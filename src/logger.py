import sys
import os
import logging
from dotenv import load_dotenv

from config.config import settings
from loguru import logger
from google.cloud import logging as g_logging
from google.cloud.logging.handlers import CloudLoggingHandler

load_dotenv()

LOCAL_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[service]}</cyan> | <level>{message}</level>"
)

class SingletonLogger():
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance.setup_logger()
        return cls._instance

    def setup_logger(self):
        # LOG_LEVEL from the environment wins over the configured default
        log_level = os.getenv('LOG_LEVEL') or settings.General.LOG_LEVEL

        logger.remove()
        logger.configure(extra={'service': settings.General.SERVICE_NAME})

        if os.getenv('DEPLOYMENT') == 'CLOUD':
            g_client = g_logging.Client(project=settings.GCP.PROJECT_ID)
            g_client.setup_logging(log_level=logging.WARNING)
            cloud_handler = CloudLoggingHandler(client=g_client, name=settings.General.SERVICE_NAME)
            logger.add(sink=cloud_handler, level=log_level, format="{message}")
        else:
            logger.add(sink=sys.stdout, level=log_level, format=LOCAL_FORMAT)

    def get_logger(self):
        return logger

logger = SingletonLogger().get_logger()
