"""
LDAP directory authentication.

Flow (search-then-bind):
1. bind as the read-only service account
2. search the base DN for `(<user_attribute>=<username>)`
3. bind as the DN found with the submitted password

The directory only answers "yes" or "no"; local user rows are managed by the
caller. ldap3 is blocking, so the work runs in a worker thread.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from ldap3 import NONE, SUBTREE, Connection, Server
from ldap3.core.exceptions import LDAPBindError, LDAPException
from ldap3.utils.conv import escape_filter_chars

from core.settings import Settings

logger = logging.getLogger(__name__)

DEFAULT_LDAP_PORT = 389


class DirectoryError(RuntimeError):
    pass


class DirectoryUnavailableError(DirectoryError):
    """The directory could not be reached or refused the service account."""


class InvalidCredentialsError(DirectoryError):
    """The submitted username/password pair was rejected."""


@dataclass(frozen=True)
class DirectoryConfig:
    host: str
    base_dn: str
    bind_dn: str
    bind_password: str
    user_attribute: str = "uid"
    connect_timeout_s: int = 10

    @classmethod
    def from_settings(cls, settings: Settings) -> DirectoryConfig:
        return cls(
            host=settings.ldap_host,
            base_dn=settings.ldap_base_dn,
            bind_dn=settings.ldap_bind_dn,
            bind_password=settings.ldap_bind_password,
            user_attribute=settings.ldap_user_attribute,
        )


def _split_host(host: str) -> tuple[str, int]:
    host = (host or "").strip()
    name, sep, port = host.rpartition(":")
    if sep and name and port.isdigit():
        return name, int(port)
    return host, DEFAULT_LDAP_PORT


class LdapDirectory:
    def __init__(self, config: DirectoryConfig) -> None:
        self._config = config

    def _server(self) -> Server:
        name, port = _split_host(self._config.host)
        return Server(name, port=port, get_info=NONE, connect_timeout=self._config.connect_timeout_s)

    def _find_user_dn(self, server: Server, username: str) -> str | None:
        try:
            conn = Connection(
                server,
                user=self._config.bind_dn,
                password=self._config.bind_password,
                auto_bind=True,
            )
        except LDAPBindError as exc:
            raise DirectoryUnavailableError("Directory refused the service account.") from exc
        except LDAPException as exc:
            raise DirectoryUnavailableError("Unable to connect to LDAP backend.") from exc

        try:
            search_filter = f"({self._config.user_attribute}={escape_filter_chars(username)})"
            conn.search(
                search_base=self._config.base_dn,
                search_filter=search_filter,
                search_scope=SUBTREE,
                attributes=[],
            )
            entries = list(conn.entries)
        except LDAPException as exc:
            raise DirectoryUnavailableError("Directory search failed.") from exc
        finally:
            conn.unbind()

        if len(entries) != 1:
            return None
        return str(entries[0].entry_dn)

    def authenticate_sync(self, username: str, password: str) -> None:
        username = (username or "").strip()
        # An empty password would be an anonymous bind, which most directories accept.
        if not username or not password:
            raise InvalidCredentialsError("Invalid username and password.")

        server = self._server()
        user_dn = self._find_user_dn(server, username)
        if user_dn is None:
            raise InvalidCredentialsError("Invalid username and password.")

        conn = Connection(server, user=user_dn, password=password)
        try:
            bound = conn.bind()
        except LDAPException as exc:
            raise DirectoryUnavailableError("Unable to connect to LDAP backend.") from exc
        finally:
            conn.unbind()

        if not bound:
            raise InvalidCredentialsError("Invalid username and password.")

    async def authenticate(self, username: str, password: str) -> None:
        """
        Raise `InvalidCredentialsError` or `DirectoryUnavailableError` on failure.
        """
        try:
            await asyncio.to_thread(self.authenticate_sync, username, password)
        except InvalidCredentialsError:
            logger.info("directory_bind_rejected username=%s", username)
            raise
        except DirectoryUnavailableError:
            logger.exception("directory_unavailable host=%s", self._config.host)
            raise
        logger.info("directory_bind_ok username=%s", username)
