"""Storage location settings."""

from pathlib import Path

from pydantic_settings import BaseSettings

from trackfit.storage.base import DEFAULT_KEY_PREFIX


class StorageSettings(BaseSettings):
    model_config = {"env_prefix": "STORAGE_"}

    # Directory holding both store files
    directory: str = "data"

    key_prefix: str = DEFAULT_KEY_PREFIX

    # General app data
    plain_file: str = "storage.json"

    # Users, sessions and rate-limit records; written owner-only
    secure_file: str = "secure-storage.json"

    @property
    def plain_path(self) -> Path:
        return Path(self.directory) / self.plain_file

    @property
    def secure_path(self) -> Path:
        return Path(self.directory) / self.secure_file
