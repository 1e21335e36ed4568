from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class Settings(BaseSettings):
    """Runtime configuration for the hash ring service."""

    model_config = SettingsConfigDict(env_prefix="RING_")

    hasher: str = "crc32"  # options: crc32, md5
    replicas: int = 64
    lookup_replicas: int = 1
    targets: List[str] = ["1", "2", "3", "4", "5", "6"]
    target_weight: float = 1.0
    sample_keys: int = 1000
    log_level: str = "INFO"


settings = Settings()
