# OAuth2 client, code and token storage.
# Created: 2026-10-12
#
# Everything is held in process memory. The key/value protocol is the seam
# for a persistent backend; validation logic only talks to it through
# get/set/delete/pop/sweep.

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Generic, Protocol, TypeVar

from invitedesk.oauth2.models import AuthorizationCode, IssuedToken, RegisteredClient

logger = logging.getLogger(__name__)

V = TypeVar("V")


class KeyValueStore(Protocol[V]):
    """Minimal mapping interface used by the authorization server."""

    def get(self, key: str) -> V | None: ...

    def set(self, key: str, value: V) -> None: ...

    def delete(self, key: str) -> bool: ...

    def pop(self, key: str) -> V | None:
        """Remove and return *key* in one step (None if absent)."""
        ...

    def sweep(self, predicate: Callable[[V], bool]) -> int:
        """Delete every value matching *predicate*. Returns count removed."""
        ...

    def __contains__(self, key: str) -> bool: ...

    def __len__(self) -> int: ...


class InMemoryStore(Generic[V]):
    """Dict-backed ``KeyValueStore``."""

    def __init__(self) -> None:
        self._data: dict[str, V] = {}

    def get(self, key: str) -> V | None:
        return self._data.get(key)

    def set(self, key: str, value: V) -> None:
        self._data[key] = value

    def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    def pop(self, key: str) -> V | None:
        return self._data.pop(key, None)

    def sweep(self, predicate: Callable[[V], bool]) -> int:
        stale = [k for k, v in self._data.items() if predicate(v)]
        for k in stale:
            del self._data[k]
        return len(stale)

    def __contains__(self, key: str) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)


class OAuthStorage:
    """Groups the client registry, code store and token store.

    The default client is seeded on construction so the static credentials
    always work, even before any dynamic registration.
    """

    def __init__(
        self,
        default_client: RegisteredClient | None = None,
        clients: KeyValueStore[RegisteredClient] | None = None,
        codes: KeyValueStore[AuthorizationCode] | None = None,
        tokens: KeyValueStore[IssuedToken] | None = None,
    ):
        # empty stores are falsy
        self.clients: KeyValueStore[RegisteredClient] = (
            clients if clients is not None else InMemoryStore()
        )
        self.codes: KeyValueStore[AuthorizationCode] = (
            codes if codes is not None else InMemoryStore()
        )
        self.tokens: KeyValueStore[IssuedToken] = (
            tokens if tokens is not None else InMemoryStore()
        )
        if default_client is not None and default_client.client_id not in self.clients:
            self.clients.set(default_client.client_id, default_client)
            logger.debug("Seeded default OAuth client %s", default_client.client_id)

    def get_client(self, client_id: str) -> RegisteredClient | None:
        return self.clients.get(client_id)
