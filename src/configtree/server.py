"""HTTP/HTTPS server configuration view."""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Any

from configtree.section import Section
from configtree.store import Store

logger = logging.getLogger(__name__)

__all__ = [
    "CONFIGURATION_PATH",
    "DEFAULT_BACKLOG",
    "DEFAULT_HOST",
    "DEFAULT_PORT",
    "DEFAULT_SESSION_COOKIE_NAME",
    "DEFAULT_SSL_PORT",
    "DEFAULT_WEB_ROOT",
    "SameSitePolicy",
    "ServerConfiguration",
    "default_server_document",
]

CONFIGURATION_PATH = "server/configuration.yml"
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 80
DEFAULT_SSL_PORT = 443
DEFAULT_WEB_ROOT = "wwwroot"
DEFAULT_BACKLOG = 100
DEFAULT_SESSION_COOKIE_NAME = "PSessionId"


class SameSitePolicy(str, Enum):
    STRICT = "Strict"
    LAX = "Lax"
    NONE = "None"


def default_server_document() -> dict[str, Any]:
    """The document written by :meth:`ServerConfiguration.write_default`."""
    return {
        "web": {
            "host": DEFAULT_HOST,
            "root": DEFAULT_WEB_ROOT,
            "backlog": DEFAULT_BACKLOG,
            "http": {
                "enabled": True,
                "port": DEFAULT_PORT,
                "https-redirect": False,
            },
            "https": {
                "enabled": False,
                "port": DEFAULT_SSL_PORT,
                "keystore": {
                    "use-keystore": False,
                    "keystore-file": "server/keystore.jks",
                    "keystore-password": "",
                },
                "pfx": {
                    "use-pfx": False,
                    "pfx-file": "server/certificate.pfx",
                    "pfx-password": "",
                },
            },
            "session": {
                "cookie": {
                    "name": DEFAULT_SESSION_COOKIE_NAME,
                    "http-only": True,
                    "secure": False,
                    "same-site-policy": "lax",
                },
            },
        },
    }


class ServerConfiguration:
    """Read-only view over a server document rooted at ``web``.

    A document without a ``web`` section is tolerated: every getter returns
    its default and :meth:`is_valid` reports False.
    """

    def __init__(self, store: Section) -> None:
        self._store = store
        if not self.is_valid():
            logger.warning("\"web\" section inside server configuration does not exist")

    @classmethod
    def write_default(cls, path: str | Path) -> ServerConfiguration:
        """Write the default server document to ``path`` and load it."""
        store = Store(path, data=default_server_document())
        store.save()
        return cls(Store.load(path))

    @property
    def store(self) -> Section:
        return self._store

    def is_valid(self) -> bool:
        return self._store.contains_section("web")

    # ----- Listener -----

    @property
    def host(self) -> str | None:
        return self._store.get_string("web.host", None)

    @property
    def http_enabled(self) -> bool:
        """HTTP is on unless disabled, or unless HTTPS is enabled with no HTTP section."""
        if not self._store.contains_section("web.http"):
            return not self.ssl_enabled
        return self._store.get_boolean("web.http.enabled", True)

    @property
    def http_port(self) -> int:
        return self._store.get_int("web.http.port", DEFAULT_PORT)

    @property
    def https_redirect(self) -> bool:
        return self._store.get_boolean("web.http.https-redirect", False)

    @property
    def backlog(self) -> int:
        return self._store.get_int("web.backlog", DEFAULT_BACKLOG)

    @property
    def web_root(self) -> str:
        root = self._store.get_string("web.root", DEFAULT_WEB_ROOT)
        return root.replace("\\", "/")

    # ----- Session cookie -----

    @property
    def session_cookie_name(self) -> str:
        return self._store.get_string("web.session.cookie.name", DEFAULT_SESSION_COOKIE_NAME)

    @property
    def session_cookie_http_only(self) -> bool:
        return self._store.get_boolean("web.session.cookie.http-only", True)

    @property
    def session_cookie_secure(self) -> bool:
        return self._store.get_boolean("web.session.cookie.secure", False)

    @property
    def session_cookie_same_site(self) -> SameSitePolicy:
        raw = self._store.get_string("web.session.cookie.same-site-policy", None)
        if raw is None:
            return SameSitePolicy.LAX
        try:
            return SameSitePolicy[raw.strip().upper()]
        except KeyError:
            logger.warning("Unknown same-site policy %r, using Lax", raw)
            return SameSitePolicy.LAX

    # ----- HTTPS -----

    @property
    def ssl_enabled(self) -> bool:
        return self._store.get_boolean("web.https.enabled", False)

    @property
    def ssl_port(self) -> int:
        return self._store.get_int("web.https.port", DEFAULT_SSL_PORT)

    @property
    def use_keystore(self) -> bool:
        return self._store.get_boolean("web.https.keystore.use-keystore", False)

    @property
    def keystore_file(self) -> Path | None:
        return self._file("web.https.keystore.keystore-file")

    @property
    def keystore_password(self) -> str | None:
        return self._store.get_string("web.https.keystore.keystore-password", None)

    @property
    def use_pfx(self) -> bool:
        return self._store.get_boolean("web.https.pfx.use-pfx", False)

    @property
    def pfx_file(self) -> Path | None:
        return self._file("web.https.pfx.pfx-file")

    @property
    def pfx_password(self) -> str | None:
        return self._store.get_string("web.https.pfx.pfx-password", None)

    def _file(self, path: str) -> Path | None:
        value = self._store.get_string(path, None)
        if not value:
            return None
        return Path(value.replace("\\", "/"))
