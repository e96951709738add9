"""
Clients for the hierarchical remote store that holds every user's ledgers.

The store is addressed by slash-joined paths and supports three operations:
point read, full-value write and subtree delete. There are no transactions and
no partial patches; the last write to a path wins.
"""
import copy
import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Optional

import requests

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """A read, write or delete against the remote store failed."""


class Snapshot:
    """The result of a read: either a stored subtree or absence."""

    def __init__(self, path: str, value: Any = None):
        self.path = path
        self._value = value

    def exists(self) -> bool:
        return self._value is not None

    def value(self) -> Any:
        return self._value

    def __repr__(self) -> str:
        return f"Snapshot(path={self.path!r}, exists={self.exists()})"


class RemoteStore(ABC):
    """Interface every store backend implements."""

    name = "abstract"

    @abstractmethod
    def read(self, path: str, token: Optional[str] = None) -> Snapshot:
        ...

    @abstractmethod
    def write(self, path: str, value: Any, token: Optional[str] = None) -> None:
        ...

    @abstractmethod
    def delete(self, path: str, token: Optional[str] = None) -> None:
        ...

    def ping(self) -> bool:
        return True


class FirebaseStore(RemoteStore):
    """Firebase Realtime Database over its REST API."""

    name = "firebase"

    def __init__(self, database_url: str, timeout: float = 10.0, session: Optional[requests.Session] = None):
        if not database_url:
            raise ValueError("FIREBASE_DATABASE_URL must be set to use the firebase store")
        self.database_url = database_url.rstrip("/")
        self.timeout = timeout
        self.http = session or requests.Session()

    def _url(self, path: str) -> str:
        return f"{self.database_url}/{path}.json"

    def _request(self, method: str, path: str, token: Optional[str], **kwargs) -> requests.Response:
        params = {"auth": token} if token else None
        try:
            response = self.http.request(method, self._url(path), params=params, timeout=self.timeout, **kwargs)
            response.raise_for_status()
            return response
        except requests.exceptions.HTTPError as e:
            logger.error(f"Store {method} {path} failed: {e.response.status_code} - {e.response.text}")
            raise StoreError(f"{method} {path} returned {e.response.status_code}") from e
        except requests.exceptions.RequestException as e:
            logger.error(f"Store {method} {path} failed: {e}")
            raise StoreError(f"{method} {path} failed: {e}") from e

    def read(self, path: str, token: Optional[str] = None) -> Snapshot:
        response = self._request("GET", path, token)
        try:
            value = response.json()
        except ValueError as e:
            logger.error(f"Store GET {path} returned a non-JSON body")
            raise StoreError(f"GET {path} returned invalid JSON") from e
        return Snapshot(path, value)

    def write(self, path: str, value: Any, token: Optional[str] = None) -> None:
        self._request("PUT", path, token, json=value)

    def delete(self, path: str, token: Optional[str] = None) -> None:
        self._request("DELETE", path, token)

    def ping(self) -> bool:
        # A shallow read of the root is enough to prove reachability.
        try:
            response = self.http.get(self._url(""), params={"shallow": "true"}, timeout=self.timeout)
            response.raise_for_status()
            return True
        except requests.exceptions.RequestException as e:
            logger.warning(f"Store ping failed: {e}")
            return False


class MemoryStore(RemoteStore):
    """
    In-process store with the same subtree semantics as the remote one.

    Writing replaces the whole value at a path, and deleting a node also drops
    any parents left empty. Used for local development and tests.
    """

    name = "memory"

    def __init__(self):
        self._root: dict = {}
        self._lock = threading.Lock()

    @staticmethod
    def _segments(path: str) -> list:
        return [segment for segment in path.split("/") if segment]

    def read(self, path: str, token: Optional[str] = None) -> Snapshot:
        with self._lock:
            node: Any = self._root
            for segment in self._segments(path):
                if not isinstance(node, dict) or segment not in node:
                    return Snapshot(path)
                node = node[segment]
            return Snapshot(path, copy.deepcopy(node) if node != {} else None)

    def write(self, path: str, value: Any, token: Optional[str] = None) -> None:
        if value is None:
            self.delete(path, token)
            return
        segments = self._segments(path)
        if not segments:
            raise StoreError("Refusing to overwrite the store root")
        with self._lock:
            node = self._root
            for segment in segments[:-1]:
                child = node.get(segment)
                if not isinstance(child, dict):
                    child = {}
                    node[segment] = child
                node = child
            node[segments[-1]] = copy.deepcopy(value)

    def delete(self, path: str, token: Optional[str] = None) -> None:
        segments = self._segments(path)
        with self._lock:
            if not segments:
                self._root.clear()
                return
            trail = []
            node: Any = self._root
            for segment in segments:
                if not isinstance(node, dict) or segment not in node:
                    return
                trail.append((node, segment))
                node = node[segment]
            parent, segment = trail.pop()
            del parent[segment]
            # Empty parents disappear, as they do in the remote store.
            for parent, segment in reversed(trail):
                if parent[segment] != {}:
                    break
                del parent[segment]
