from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    DATABASE_URL: str
    HOST: str = "0.0.0.0"
    PORT: int = 5000
    LOG_LEVEL: str = "INFO"
    SQL_ECHO: bool = False

    # Sakila requires these on insert, the API lets clients omit them
    DEFAULT_STAFF_ID: int = 1
    DEFAULT_ADDRESS_ID: int = 1

    # This tells Pydantic to read from the .env file
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


# Create a single instance of the settings to use everywhere
settings = Settings()
