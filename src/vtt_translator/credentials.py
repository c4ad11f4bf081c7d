"""API key storage."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Optional, Protocol

from dotenv import get_key, set_key, unset_key

from .config import API_KEY_NAME
from .errors import InvalidArgument

logger = logging.getLogger(__name__)


class SecretStore(Protocol):
    """Key-value store for secret strings."""

    def get(self, name: str) -> Optional[str]: ...

    def set(self, name: str, value: str) -> None: ...

    def delete(self, name: str) -> None: ...


class MemorySecretStore:
    """Process-local store, used in tests and when embedding the library."""

    def __init__(self):
        self._values: Dict[str, str] = {}

    def get(self, name: str) -> Optional[str]:
        return self._values.get(name)

    def set(self, name: str, value: str) -> None:
        self._values[name] = value

    def delete(self, name: str) -> None:
        self._values.pop(name, None)


class DotenvSecretStore:
    """Stores secrets in a ``.env`` file, readable by ``load_dotenv``."""

    def __init__(self, path: Path = Path(".env")):
        self.path = path

    def get(self, name: str) -> Optional[str]:
        if not self.path.exists():
            return None
        value = get_key(self.path, name)
        return value or None

    def set(self, name: str, value: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.touch(exist_ok=True)
        set_key(self.path, name, value)
        logger.debug(f"Stored {name} in {self.path}")

    def delete(self, name: str) -> None:
        if not self.path.exists():
            return
        unset_key(self.path, name)
        logger.debug(f"Removed {name} from {self.path}")


def load_api_key(store: SecretStore) -> Optional[str]:
    return store.get(API_KEY_NAME)


def save_api_key(store: SecretStore, api_key: str) -> None:
    api_key = api_key.strip()
    if not api_key:
        raise InvalidArgument("API key must not be empty")
    store.set(API_KEY_NAME, api_key)
    logger.info("API key saved")


def clear_api_key(store: SecretStore) -> None:
    store.delete(API_KEY_NAME)
    logger.info("API key cleared")
