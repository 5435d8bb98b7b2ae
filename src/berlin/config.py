"""Berlin configuration.

BuildConfig is the central configuration object, frozen after creation.
SiteConfig and ProfilesConfig carry the site metadata templates see.
"""

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True, slots=True)
class BuildConfig:
    """Configuration for one berlin site.

    Attributes:
        root: Path to the site root directory (contains content/, pages/, etc.).
              Always resolved to an absolute path on construction.
        content_dir: Directory containing markdown and org notes.
        data_dir: Directory containing CSV feeds.
        css_dir: Directory containing stylesheets.
        templates_dir: Directory containing Jinja2 templates.
        static_dir: Directory containing static assets.
        output: Output directory (relative to root unless absolute).
        host: Bind address when serving the output in watch mode.
        port: Bind port when serving the output in watch mode.
        debounce_ms: Quiet interval that ends a burst of file events.
        config_file: The config file this was loaded from, if any.

    """

    root: Path = field(default_factory=Path.cwd)
    content_dir: str = "content"
    data_dir: str = "data"
    css_dir: str = "css"
    templates_dir: str = "pages"
    static_dir: str = "static"
    output: Path = field(default_factory=lambda: Path("target"))
    host: str = "127.0.0.1"
    port: int = 8000
    debounce_ms: int = 1000
    config_file: Path | None = None

    def __post_init__(self) -> None:
        # watchfiles reports absolute paths; keep root comparable to them.
        if not self.root.is_absolute():
            object.__setattr__(self, "root", self.root.resolve())
        if not isinstance(self.output, Path):
            object.__setattr__(self, "output", Path(str(self.output)))

    @property
    def content_path(self) -> Path:
        """Absolute path to content directory."""
        return self.root / self.content_dir

    @property
    def data_path(self) -> Path:
        """Absolute path to CSV data directory."""
        return self.root / self.data_dir

    @property
    def css_path(self) -> Path:
        """Absolute path to stylesheet directory."""
        return self.root / self.css_dir

    @property
    def templates_path(self) -> Path:
        """Absolute path to templates directory."""
        return self.root / self.templates_dir

    @property
    def static_path(self) -> Path:
        """Absolute path to static assets directory."""
        return self.root / self.static_dir

    @property
    def output_path(self) -> Path:
        """Absolute path to output directory."""
        if self.output.is_absolute():
            return self.output
        return self.root / self.output

    def watch_paths(self) -> list[Path]:
        """Source directories watched in watch mode (those that exist)."""
        candidates = [
            self.content_path,
            self.data_path,
            self.css_path,
            self.templates_path,
            self.static_path,
        ]
        return [p for p in candidates if p.is_dir()]


@dataclass(frozen=True, slots=True)
class SiteConfig:
    """The ``[site]`` table."""

    url: str | None = None
    author: str | None = None
    description: str | None = None
    title: str | None = None


@dataclass(frozen=True, slots=True)
class ProfilesConfig:
    """The ``[profiles]`` table (social profile links)."""

    linkedin: str | None = None
    github: str | None = None
    twitter: str | None = None
    mastodon: str | None = None


@dataclass(frozen=True, slots=True)
class SiteMetadata:
    """Site and profile metadata read from one config file."""

    site: SiteConfig = field(default_factory=SiteConfig)
    profiles: ProfilesConfig = field(default_factory=ProfilesConfig)
