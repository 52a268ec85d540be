import os

from dotenv import load_dotenv
from pydantic import BaseModel, ValidationError, field_validator

from filevault.exceptions import ConfigurationError

load_dotenv()

SECRET_KEY_HEX_LENGTH = 64


class Settings(BaseModel):
    secret_key_hex: str

    mongo_uri: str = "mongodb://127.0.0.1:27017"
    db_name: str = "encrypted_storage"

    aws_region: str = "ap-south-1"
    primary_bucket: str = "file-store-vq"
    backup_bucket: str = "file-store-wm-2"
    s3_endpoint_url: str | None = None

    mft_url: str | None = None
    mft_basic_auth: str | None = None
    mft_timeout: float = 10.0

    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"

    @field_validator("secret_key_hex")
    @classmethod
    def check_secret_key(cls, value: str) -> str:
        if len(value) != SECRET_KEY_HEX_LENGTH:
            raise ValueError(
                f"SECRET_KEY_HEX must be {SECRET_KEY_HEX_LENGTH} hex characters"
            )
        try:
            bytes.fromhex(value)
        except ValueError:
            raise ValueError("SECRET_KEY_HEX is not valid hex")
        return value

    @property
    def secret_key(self) -> bytes:
        return bytes.fromhex(self.secret_key_hex)

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build settings from environment variables (and .env).

        Raises ConfigurationError when SECRET_KEY_HEX is absent or
        malformed, or any other value fails validation.
        """
        secret = os.getenv("SECRET_KEY_HEX")
        if not secret:
            raise ConfigurationError("SECRET_KEY_HEX is missing")

        values = {"secret_key_hex": secret}
        for field in (
            "mongo_uri", "db_name",
            "aws_region", "primary_bucket", "backup_bucket", "s3_endpoint_url",
            "mft_url", "mft_basic_auth", "mft_timeout",
            "host", "port", "log_level",
        ):
            raw = os.getenv(field.upper())
            if raw:
                values[field] = raw

        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e
