from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    # App settings
    PROJECT_NAME: str = "Ledgerboard"
    API_PREFIX: str = "/api"
    DEBUG: bool = Field(default=False)
    LOG_LEVEL: str = Field(default="INFO")

    # Storage: "memory" keeps everything in-process, "dynamo" uses DynamoDB
    STORAGE_BACKEND: str = Field(default="memory")

    # DynamoDB
    DYNAMO_REGION: str = Field(default="eu-west-1")
    DYNAMO_TABLE: str = Field(default="ledgerboard-records")
    DYNAMO_ENDPOINT_URL: str = Field(default="")  # e.g. http://localhost:8000 for dynamodb-local

    # Create the stock categories on startup when the registry is empty
    SEED_DEFAULT_CATEGORIES: bool = Field(default=True)


settings = Settings()
