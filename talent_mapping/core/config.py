from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict
import os

# Load .env file if it exists, for local development.
# In production, environment variables should be set directly.
if os.path.exists(".env"):
    from dotenv import load_dotenv
    load_dotenv()


class StorageSettings(BaseSettings):
    encryption_key: str = "atma-assessment-secure-key-2024"
    redis_url: Optional[str] = None  # In-memory store when unset
    key_prefix: str = "talent:"
    answers_key: str = "assessmentAnswers"
    flags_key: str = "assessmentFlaggedQuestions"

    model_config = SettingsConfigDict(env_prefix='STORAGE_')


class ApiSettings(BaseSettings):
    base_url: str = "http://localhost:3000"
    timeout: float = 30.0
    auth_token: Optional[str] = None

    model_config = SettingsConfigDict(env_prefix='API_')


class PollerSettings(BaseSettings):
    max_attempts: int = 6  # Initial attempt + 5 retries
    base_delay: float = 1.0
    cap_delay: float = 10.0

    model_config = SettingsConfigDict(env_prefix='RESULT_POLL_')


class LoggingSettings(BaseSettings):
    level: str = "INFO"

    model_config = SettingsConfigDict(env_prefix='LOG_')


# Instantiate settings
storage_settings = StorageSettings()
api_settings = ApiSettings()
poller_settings = PollerSettings()
logging_settings = LoggingSettings()
