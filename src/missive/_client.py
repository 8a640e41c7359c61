"""
Entry point of the missive SDK.

Example:
    >>> from missive import Client
    >>> client = Client(api_token="...")
    >>> for user in client.users.iter_all():
    ...     print(user.get("name"))
"""

import logging
import threading
from functools import cached_property

from missive._config import MissiveConfig
from missive._connection import Connection
from missive._errors import MissingTokenError
from missive._http import HttpClient
from missive._instrumentation import Instrumenter
from missive._paginator import Paginator
from missive.resources import (
    Analytics,
    ContactBooks,
    ContactGroups,
    Contacts,
    Conversations,
    Drafts,
    Hooks,
    Messages,
    Organizations,
    Posts,
    Responses,
    SharedLabels,
    Tasks,
    Teams,
    Users,
)

logger = logging.getLogger(__name__)


class Client:
    """
    Missive API client.

    One client owns one `Connection`, and so one token bucket and one
    concurrency limit. Create one client per API token and share it across
    threads.

    Args:
        api_token: Missive API token. Falls back to `config.client.api_token`
            (i.e. `MISSIVE_API_TOKEN`).
        config: SDK configuration. Defaults to `MissiveConfig.load()`.
        instrumenter: Receives pipeline and pagination events.
        http_client: Innermost HTTP client, mainly for tests.

    Raises:
        MissingTokenError: If no token is given nor configured.
    """

    def __init__(
        self,
        api_token: str | None = None,
        config: MissiveConfig | None = None,
        instrumenter: Instrumenter | None = None,
        http_client: HttpClient | None = None,
    ):
        self.config = config or MissiveConfig.load()
        token = api_token or self.config.client.api_token
        if not token:
            raise MissingTokenError("api_token is required (pass it or set MISSIVE_API_TOKEN)")

        self.token = token
        self.instrumenter = instrumenter or Instrumenter()
        self._http_client = http_client

        self._connection: Connection | None = None
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        return f"Client(base_url={self.config.client.base_url!r})"

    @property
    def connection(self) -> Connection:
        """The client's connection, created on first use."""
        if self._connection is None:
            with self._lock:
                if self._connection is None:
                    self._connection = Connection(
                        token=self.token,
                        config=self.config,
                        instrumenter=self.instrumenter,
                        http_client=self._http_client,
                    )
        return self._connection

    def close(self) -> None:
        if self._connection is not None:
            self._connection.close()

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @cached_property
    def paginator(self) -> Paginator:
        return Paginator(instrumenter=self.instrumenter)

    @cached_property
    def analytics(self) -> Analytics:
        return Analytics(self)

    @cached_property
    def contacts(self) -> Contacts:
        return Contacts(self)

    @cached_property
    def contact_books(self) -> ContactBooks:
        return ContactBooks(self)

    @cached_property
    def contact_groups(self) -> ContactGroups:
        return ContactGroups(self)

    @cached_property
    def conversations(self) -> Conversations:
        return Conversations(self)

    @cached_property
    def messages(self) -> Messages:
        return Messages(self)

    @cached_property
    def drafts(self) -> Drafts:
        return Drafts(self)

    @cached_property
    def posts(self) -> Posts:
        return Posts(self)

    @cached_property
    def tasks(self) -> Tasks:
        return Tasks(self)

    @cached_property
    def hooks(self) -> Hooks:
        return Hooks(self)

    @cached_property
    def organizations(self) -> Organizations:
        return Organizations(self)

    @cached_property
    def teams(self) -> Teams:
        return Teams(self)

    @cached_property
    def users(self) -> Users:
        return Users(self)

    @cached_property
    def responses(self) -> Responses:
        return Responses(self)

    @cached_property
    def shared_labels(self) -> SharedLabels:
        return SharedLabels(self)
