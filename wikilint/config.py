"""
Configuration constants and wiki mappings for the wikilint solution.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional
import json
import os


# MediaWiki namespace numbers used by the analysis
NAMESPACE_MAIN = 0
NAMESPACE_FILE = 6
NAMESPACE_TEMPLATE = 10
NAMESPACE_CATEGORY = 14

# Canonical namespace names shared by all wikis
CANONICAL_NAMESPACES: Dict[str, int] = {
    "Media": -2,
    "Special": -1,
    "Talk": 1,
    "User": 2,
    "User talk": 3,
    "Project": 4,
    "Wikipedia": 4,
    "File": NAMESPACE_FILE,
    "Image": NAMESPACE_FILE,
    "MediaWiki": 8,
    "Template": NAMESPACE_TEMPLATE,
    "Help": 12,
    "Category": NAMESPACE_CATEGORY,
    "Portal": 100,
    "Draft": 118,
    "Module": 828,
}


@dataclass
class WikiConfiguration:
    """Settings describing one wiki for normalization and link checks."""
    code: str
    name: str
    hosts: List[str]
    api_path: str = "/w/api.php"
    article_path: str = "/wiki/"
    category_aliases: List[str] = field(default_factory=lambda: ["Category"])
    file_aliases: List[str] = field(default_factory=lambda: ["File", "Image"])
    case_sensitive: bool = False
    secure: bool = True

    @property
    def api_url(self) -> str:
        """Get the api.php URL of the wiki."""
        scheme = "https" if self.secure else "http"
        return f"{scheme}://{self.hosts[0]}{self.api_path}"

    def is_category_namespace(self, prefix: str) -> bool:
        """Check if a link prefix designates the category namespace."""
        prefix = prefix.strip().replace("_", " ").lower()
        return any(prefix == alias.lower() for alias in self.category_aliases)

    def is_file_namespace(self, prefix: str) -> bool:
        """Check if a link prefix designates the file namespace."""
        prefix = prefix.strip().replace("_", " ").lower()
        return any(prefix == alias.lower() for alias in self.file_aliases)

    def get_namespace(self, title: str) -> int:
        """Get the namespace number of a page title from its prefix."""
        if ":" not in title:
            return NAMESPACE_MAIN
        prefix = title.split(":", 1)[0].strip().replace("_", " ")
        if self.is_category_namespace(prefix):
            return NAMESPACE_CATEGORY
        if self.is_file_namespace(prefix):
            return NAMESPACE_FILE
        for name, number in CANONICAL_NAMESPACES.items():
            if prefix.lower() == name.lower():
                return number
        return NAMESPACE_MAIN


# Known wikis
WIKI_MAPPINGS: Dict[str, WikiConfiguration] = {
    "en": WikiConfiguration(
        code="en",
        name="English Wikipedia",
        hosts=["en.wikipedia.org"],
    ),
    "fr": WikiConfiguration(
        code="fr",
        name="Wikipédia en français",
        hosts=["fr.wikipedia.org"],
        category_aliases=["Catégorie", "Category"],
        file_aliases=["Fichier", "File", "Image"],
    ),
    "de": WikiConfiguration(
        code="de",
        name="Deutschsprachige Wikipedia",
        hosts=["de.wikipedia.org"],
        category_aliases=["Kategorie", "Category"],
        file_aliases=["Datei", "File", "Bild", "Image"],
    ),
    "enwiktionary": WikiConfiguration(
        code="en",
        name="English Wiktionary",
        hosts=["en.wiktionary.org"],
        case_sensitive=True,
    ),
    "wikiskripta": WikiConfiguration(
        code="cs",
        name="WikiSkripta",
        hosts=["www.wikiskripta.eu"],
        api_path="/api.php",
        article_path="/w/",
        category_aliases=["Kategorie", "Category"],
        file_aliases=["Soubor", "File", "Image"],
        secure=False,
    ),
}

SUPPORTED_WIKIS = list(WIKI_MAPPINGS.keys())


@dataclass
class AnalysisConfig:
    """Global configuration for analysis and fixing runs."""

    # Target wiki
    wiki_code: str = "en"
    api_url: Optional[str] = None
    user_agent: str = "wikilint/1.0 (https://github.com/wikilint/wikilint)"

    # Network settings
    network_timeout: int = 30

    # Batch settings
    max_workers: int = 4
    max_fix_passes: int = 3
    edit_comment: str = "Fixing syntax errors"

    # Logging
    log_file: Optional[Path] = None

    # Per-checker properties, keyed by checker id
    checker_properties: Dict[int, Dict[str, str]] = field(default_factory=dict)

    def __post_init__(self):
        """Normalize checker property keys."""
        self.checker_properties = {
            int(key): dict(value) for key, value in self.checker_properties.items()
        }
        if self.max_workers < 1:
            self.max_workers = 1

    @classmethod
    def from_env(cls) -> "AnalysisConfig":
        """Create configuration from environment variables."""
        log_file = os.getenv("WIKILINT_LOG_FILE")
        return cls(
            wiki_code=os.getenv("WIKILINT_WIKI", "en"),
            api_url=os.getenv("WIKILINT_API_URL") or None,
            network_timeout=int(os.getenv("WIKILINT_TIMEOUT", "30")),
            max_workers=int(os.getenv("WIKILINT_WORKERS", "4")),
            log_file=Path(log_file) if log_file else None,
        )

    @classmethod
    def from_file(cls, path: Path) -> "AnalysisConfig":
        """Create configuration from a JSON file, on top of the environment."""
        config = cls.from_env()
        with open(path) as f:
            data = json.load(f)

        for key in ("wiki_code", "api_url", "user_agent", "edit_comment"):
            if key in data:
                setattr(config, key, data[key])
        for key in ("network_timeout", "max_workers", "max_fix_passes"):
            if key in data:
                setattr(config, key, int(data[key]))
        if "log_file" in data:
            config.log_file = Path(data["log_file"])
        if "checkers" in data:
            config.checker_properties = {
                int(key): {name: str(value) for name, value in props.items()}
                for key, props in data["checkers"].items()
            }
        config.__post_init__()
        return config

    @property
    def wiki(self) -> WikiConfiguration:
        """Get the wiki configuration, falling back to English Wikipedia."""
        return WIKI_MAPPINGS.get(self.wiki_code, WIKI_MAPPINGS["en"])

    def get_api_url(self) -> str:
        """Get the API endpoint, explicit URL first."""
        return self.api_url or self.wiki.api_url

    def get_checker_properties(self, checker_id: int) -> "CheckerProperties":
        """Get the properties given to one checker."""
        return CheckerProperties(self.checker_properties.get(checker_id, {}))


class CheckerProperties:
    """Read-only named properties handed to a checker at construction."""

    def __init__(self, values: Optional[Mapping[str, str]] = None):
        self._values = dict(values or {})

    def get_property(self, name: str) -> Optional[str]:
        """Get a property value, None when missing or blank."""
        value = self._values.get(name)
        if value is None or not value.strip():
            return None
        return value

    def get_property_int(self, name: str) -> Optional[int]:
        """Get a property as an integer, None when missing or invalid."""
        value = self.get_property(name)
        if value is None:
            return None
        try:
            return int(value.strip())
        except ValueError:
            return None

    def get_property_list(self, name: str) -> List[str]:
        """Get a multi-line property as a list of non-empty lines."""
        value = self.get_property(name)
        if value is None:
            return []
        return [line.strip() for line in value.splitlines() if line.strip()]

    def __contains__(self, name: str) -> bool:
        return self.get_property(name) is not None

    def __repr__(self) -> str:
        return f"CheckerProperties({self._values!r})"


# Default global configuration instance
DEFAULT_CONFIG = AnalysisConfig()


def get_wiki(wiki_code: str) -> Optional[WikiConfiguration]:
    """Get wiki configuration for a code."""
    return WIKI_MAPPINGS.get(wiki_code)


def get_api_url(wiki_code: str) -> Optional[str]:
    """Get the api.php URL for a wiki code."""
    wiki = WIKI_MAPPINGS.get(wiki_code)
    return wiki.api_url if wiki else None


def find_wiki_by_host(host: str) -> Optional[WikiConfiguration]:
    """Find a known wiki serving a host name."""
    host = host.lower()
    for wiki in WIKI_MAPPINGS.values():
        if host in wiki.hosts:
            return wiki
    return None


def validate_wiki_code(wiki_code: str) -> bool:
    """Check if a wiki code is supported."""
    return wiki_code in SUPPORTED_WIKIS
