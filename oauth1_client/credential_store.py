"""
Credential persistence for OAuth 1.0a sessions.

One JSON object per file holds the access token of a single consumer.
Writes go to a private temporary file in the same directory which then
replaces the target, so a crash never leaves a half-written record and
the token is never readable by other users, not even briefly.

``load_for()`` reports why a record could not be used (missing file,
unreadable JSON, another consumer's record, no access token) so the
session can explain the situation instead of silently starting over.
"""

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from .credentials import CredentialRecord
from .exceptions import PersistenceError

logger = logging.getLogger(__name__)


class LoadStatus(str, Enum):
    """Outcome of looking up stored credentials for a consumer."""

    LOADED = "loaded"
    NOT_FOUND = "not_found"
    INVALID = "invalid"
    CONSUMER_MISMATCH = "consumer_mismatch"
    NO_ACCESS_TOKEN = "no_access_token"


@dataclass
class LoadResult:
    status: LoadStatus
    record: Optional[CredentialRecord] = None

    @property
    def ok(self) -> bool:
        return self.status is LoadStatus.LOADED


class CredentialStore:
    """JSON file holding one consumer's access token (mode 600)."""

    def __init__(self, credentials_file: str):
        self.credentials_file = Path(credentials_file)

    def save(self, record: CredentialRecord) -> None:
        """
        Atomically replace the stored record.

        Raises:
            PersistenceError: If the file cannot be written
        """
        directory = self.credentials_file.parent
        tmp_path = None
        try:
            directory.mkdir(parents=True, exist_ok=True)
            # mkstemp creates the file readable by the owner only
            fd, tmp_path = tempfile.mkstemp(
                dir=str(directory), prefix=f".{self.credentials_file.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w") as f:
                json.dump(record.to_dict(), f, indent=2)
            os.replace(tmp_path, self.credentials_file)
            tmp_path = None
        except OSError as e:
            logger.error(f"Could not write {self.credentials_file}: {e}")
            raise PersistenceError(f"Could not write {self.credentials_file}: {e}") from e
        finally:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)

        logger.info(f"Stored {record.api_name or 'OAuth'} credentials in {self.credentials_file}")

    def load(self) -> Optional[CredentialRecord]:
        """
        Read the stored record without judging it.

        Returns:
            The record, or None if the file is missing or unreadable
        """
        if not self.credentials_file.exists():
            logger.info(f"No stored credentials at {self.credentials_file}")
            return None

        try:
            data = json.loads(self.credentials_file.read_text())
            return CredentialRecord.from_dict(data)
        except (ValueError, TypeError) as e:
            logger.warning(f"Ignoring unreadable credentials file {self.credentials_file}: {e}")
        except OSError as e:
            logger.warning(f"Could not open {self.credentials_file}: {e}")
        return None

    def load_for(self, consumer_key: str, consumer_secret: str) -> LoadResult:
        """
        Look up a usable access token for the given consumer.

        A record is only usable when it was written for the same consumer
        key and secret and carries both halves of the access token.
        """
        if not self.credentials_file.exists():
            logger.info(f"No stored credentials at {self.credentials_file}")
            return LoadResult(LoadStatus.NOT_FOUND)

        record = self.load()
        if record is None:
            return LoadResult(LoadStatus.INVALID)
        if not record.matches_consumer(consumer_key, consumer_secret):
            return LoadResult(LoadStatus.CONSUMER_MISMATCH, record)
        if not record.has_access_token:
            return LoadResult(LoadStatus.NO_ACCESS_TOKEN, record)
        return LoadResult(LoadStatus.LOADED, record)

    def delete(self) -> bool:
        """
        Remove the stored record.

        Returns:
            True if a file was removed, False if there was none

        Raises:
            PersistenceError: If the file exists but cannot be removed
        """
        try:
            self.credentials_file.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise PersistenceError(f"Could not remove {self.credentials_file}: {e}") from e

        logger.info(f"Removed stored credentials {self.credentials_file}")
        return True

    def exists(self) -> bool:
        return self.credentials_file.exists()
