from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    appHost: str = "0.0.0.0"
    appPort: int = 5000
    corsOrigins: List[str] = ["*"]

    poolSize: int = 10
    poolMaxOverflow: int = 0
    poolRecycleSeconds: int = 1800
    connectTimeoutSeconds: float = 2.0
    queryTimeoutSeconds: float = 30.0

    defaultRowLimit: int = 100
    defaultSchema: str = "public"

    debug: bool = False

    model_config = SettingsConfigDict(env_file=".env", env_prefix="DDLFORGE_", extra="ignore")

@lru_cache()
def getSettings() -> Settings:
    return Settings()

settings = getSettings()
