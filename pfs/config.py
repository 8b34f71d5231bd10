"""Configuration settings for the transient file server."""
import os
import secrets
import string
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

VERSION = "0.9.4"

# Defaults for the command line
DEFAULT_PORT = 8080
DEFAULT_TIMEOUT_MINUTES = 10

# Secret username
TOKEN_LENGTH = 8
TOKEN_ALPHABET = string.ascii_letters + string.digits
AUTH_REALM = "pfs"

# Upload streaming
CHUNK_SIZE = 8192  # 8KB

# Route paths used outside of "/"
UPLOAD_PATH = "/fs-upload"
RECEIVE_PATH = "/fs-receive"

# Optional log directory. Unset means console logging only, so nothing
# is written into the directory being served.
LOG_DIR = os.getenv("PFS_LOG_DIR")


class Mode(str, Enum):
    UPLOAD = "upload"
    DOWNLOAD = "download"
    BOTH = "both"


def generate_token(length: int = TOKEN_LENGTH) -> str:
    """Generate the random username required to access the server."""
    return ''.join(secrets.choice(TOKEN_ALPHABET) for _ in range(length))


class ServerConfig(BaseModel):
    """Server configuration, built once at startup and never changed."""
    model_config = ConfigDict(frozen=True)

    mode: Mode
    port: int = DEFAULT_PORT
    timeout_minutes: float = DEFAULT_TIMEOUT_MINUTES
    insecure: bool = False
    token: Optional[str] = None
    directory: Path

    @field_validator('port')
    @classmethod
    def validate_port(cls, v):
        if not 1 <= v <= 65535:
            raise ValueError('Port must be between 1 and 65535')
        return v

    @field_validator('timeout_minutes')
    @classmethod
    def validate_timeout(cls, v):
        if v <= 0:
            raise ValueError('Timeout must be a positive number of minutes')
        return v

    @model_validator(mode='after')
    def validate_token(self):
        if not self.insecure and not self.token:
            raise ValueError('A secret token is required unless insecure is set')
        return self

    @property
    def auth_enabled(self) -> bool:
        return not self.insecure

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_minutes * 60

    @classmethod
    def create(cls, mode: Mode, port: int = DEFAULT_PORT,
               timeout_minutes: float = DEFAULT_TIMEOUT_MINUTES,
               insecure: bool = False, directory: Optional[Path] = None) -> 'ServerConfig':
        """Build the config, generating the secret token unless insecure."""
        return cls(
            mode=mode,
            port=port,
            timeout_minutes=timeout_minutes,
            insecure=insecure,
            token=None if insecure else generate_token(),
            directory=directory or Path.cwd(),
        )
