# Core components: config and logging
from .config import api_settings, logging_settings, poller_settings, storage_settings
from .logging_config import setup_logging
