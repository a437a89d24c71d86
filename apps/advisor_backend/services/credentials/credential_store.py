"""Storage of the opaque access tokens issued for each linked institution."""

import json
import os
import tempfile
from pathlib import Path
from typing import List, Optional, Protocol

from advisor_backend.config import settings
from advisor_backend.core.logging_config import logger


class CredentialPersistence(Protocol):
    """Durable backing for the credential list."""

    def read(self) -> List[str]:
        ...

    def write(self, credentials: List[str]) -> None:
        ...


class JsonFileCredentialPersistence:
    """Keeps credentials in a JSON file shaped as ``{"access_tokens": [...]}``.

    Files written by earlier releases use the ``accessTokens`` key; they are
    still read and are rewritten in the current shape on the next append.
    """

    LEGACY_KEY = "accessTokens"

    def __init__(self, path: Path):
        self.path = Path(path)

    def read(self) -> List[str]:
        if not self.path.exists():
            return []
        raw = json.loads(self.path.read_text(encoding="utf-8"))
        if not isinstance(raw, dict):
            raise ValueError("credential file must hold a JSON object")
        if "access_tokens" in raw:
            tokens = raw["access_tokens"]
        elif self.LEGACY_KEY in raw:
            logger.info("credentials_legacy_format_detected", path=str(self.path))
            tokens = raw[self.LEGACY_KEY]
        else:
            logger.warning("credentials_file_without_tokens", path=str(self.path))
            tokens = []
        tokens = tokens or []
        if not isinstance(tokens, list) or not all(isinstance(t, str) for t in tokens):
            raise ValueError("access_tokens must be a list of strings")
        return tokens

    def write(self, credentials: List[str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps({"access_tokens": credentials}, indent=2)

        # Temp file + replace: the file on disk is always a complete list.
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".credentials-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
            os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, self.path)
        except Exception:
            Path(tmp_name).unlink(missing_ok=True)
            raise


class InMemoryCredentialPersistence:
    """Persistence that never touches the filesystem."""

    def __init__(self, credentials: Optional[List[str]] = None):
        self.saved: List[str] = list(credentials or [])
        self.write_count = 0

    def read(self) -> List[str]:
        return list(self.saved)

    def write(self, credentials: List[str]) -> None:
        self.saved = list(credentials)
        self.write_count += 1


class CredentialStore:
    """Append-only, in-memory list of credentials flushed to a persistence port.

    The in-memory list is authoritative for the process lifetime; read and
    write failures of the persistence port are logged and never raised.
    """

    def __init__(self, persistence: CredentialPersistence):
        self.persistence = persistence
        self._credentials: List[str] = []

    def load(self) -> List[str]:
        """Load persisted credentials, falling back to an empty list on any error."""
        try:
            loaded = self.persistence.read()
        except Exception as e:
            logger.error("credentials_load_failed", error=str(e), error_type=type(e).__name__)
            loaded = []

        self._credentials = list(loaded)
        logger.info("credentials_loaded", count=len(self._credentials))
        return list(self._credentials)

    def append(self, credential: str) -> None:
        self._credentials.append(credential)
        self.flush()

    def flush(self) -> None:
        try:
            self.persistence.write(list(self._credentials))
        except Exception as e:
            logger.error("credentials_save_failed", error=str(e), error_type=type(e).__name__)

    def credentials(self) -> List[str]:
        return list(self._credentials)

    def __len__(self) -> int:
        return len(self._credentials)


def build_credential_store() -> CredentialStore:
    store = CredentialStore(JsonFileCredentialPersistence(settings.CREDENTIALS_FILE))
    store.load()
    return store
