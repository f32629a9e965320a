"""Web application configuration: document root, welcome files and servlets."""

from __future__ import annotations

from dataclasses import dataclass, field

from configtree.section import Section

__all__ = ["ServletConfiguration", "WebApplicationConfiguration", "CONFIGURATION_PATH", "DEFAULT_ROOT"]

CONFIGURATION_PATH = "app/app.yml"
DEFAULT_ROOT = "wwwroot"


@dataclass
class ServletConfiguration:
    """One entry under ``app.servlets``."""

    name: str
    class_name: str | None
    url_patterns: tuple[str, ...] = field(default_factory=tuple)


class WebApplicationConfiguration:
    """Read-only view over an application document.

    Expected layout::

        app:
          root: wwwroot
          welcome: [index.html]
          servlets:
            Home:
              class: com.example.Home
              url-patterns: ["/", "/home"]
    """

    def __init__(self, store: Section) -> None:
        self._store = store

    @property
    def store(self) -> Section:
        return self._store

    def has_app_section(self) -> bool:
        return self._store.contains_section("app")

    def has_servlet_section(self) -> bool:
        return self._store.contains_section("app.servlets")

    @property
    def root(self) -> str | None:
        """Website root directory; None when there is no ``app`` section."""
        if not self.has_app_section():
            return None
        return self._store.get_string("app.root", DEFAULT_ROOT)

    @property
    def welcome_files(self) -> list[str] | None:
        return self._store.get_string_list("app.welcome", None)

    def _servlets(self) -> Section | None:
        return self._store.get_section("app.servlets")

    def servlet_names(self) -> list[str]:
        servlets = self._servlets()
        if servlets is None:
            return []
        return [child.name for child in servlets.children()]

    def servlet_class(self, name: str) -> str | None:
        servlets = self._servlets()
        if servlets is None:
            return None
        return servlets.get_string(f"{name}.class", None)

    def servlet_url_patterns(self, name: str) -> tuple[str, ...]:
        """URL patterns for a servlet, ``("/<name>",)`` when not configured."""
        servlets = self._servlets()
        fallback = ("/" + name,)
        if servlets is None:
            return fallback
        return servlets.get_string_array(f"{name}.url-patterns", fallback)

    def servlet(self, name: str) -> ServletConfiguration | None:
        servlets = self._servlets()
        if servlets is None or not servlets.contains_section(name):
            return None
        return ServletConfiguration(
            name=name,
            class_name=self.servlet_class(name),
            url_patterns=self.servlet_url_patterns(name),
        )

    def servlets(self) -> list[ServletConfiguration]:
        result = []
        for name in self.servlet_names():
            servlet = self.servlet(name)
            if servlet is not None:
                result.append(servlet)
        return result
