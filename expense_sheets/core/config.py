from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App settings
    PROJECT_NAME: str = "ExpenseSheets"
    API_PREFIX: str = "/api"
    DEBUG: bool = Field(default=False)
    LOG_LEVEL: str = Field(default="INFO")
    CORS_ORIGINS: List[str] = Field(default=["http://localhost:3000", "http://localhost:8000"])

    # DynamoDB
    DYNAMO_REGION: str = Field(default="eu-west-1")
    DYNAMO_ENDPOINT_URL: Optional[str] = Field(default=None)
    DYNAMO_CREATE_TABLES: bool = Field(default=False)
    DYNAMO_USERS_TABLE: str = Field(default="expense-sheets-users", validation_alias="DYNAMO_TABLE_USERS")
    DYNAMO_SHEETS_TABLE: str = Field(default="expense-sheets-sheets", validation_alias="DYNAMO_TABLE_SHEETS")
    DYNAMO_EXPENSES_TABLE: str = Field(default="expense-sheets-expenses", validation_alias="DYNAMO_TABLE_EXPENSES")
    DYNAMO_CATEGORIES_TABLE: str = Field(
        default="expense-sheets-categories", validation_alias="DYNAMO_TABLE_CATEGORIES"
    )
    DYNAMO_DESCRIPTIONS_TABLE: str = Field(
        default="expense-sheets-descriptions", validation_alias="DYNAMO_TABLE_DESCRIPTIONS"
    )

    # JWT Authentication
    JWT_SECRET_KEY: str = Field(default="change-me-in-production", validation_alias="JWT_SECRET")
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24  # 1 day

    # Google sign-in; empty disables /auth/google
    GOOGLE_CLIENT_ID: str = Field(default="")

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")


settings = Settings()
