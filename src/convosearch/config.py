"""Service configuration loaded from environment variables."""
from pydantic import computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Service configuration loaded from environment variables.

    Attributes:
        host: Bind address for the API server.
        port: Port number for the API server.
        debug: Enable debug logging and API documentation.
        database_path: SQLite database file, or ":memory:".
        index_name: Base name of the full-text search index.
        index_version: Schema version of the index. Bump it whenever the
            indexed content changes shape; older versions are dropped on
            registration.
        max_search_results: Upper bound on matches delivered per search.
        snippet_start: Marker inserted before a matched token in snippets.
        snippet_end: Marker inserted after a matched token in snippets.
        snippet_ellipsis: Text marking truncated snippet edges.
        snippet_tokens: Maximum number of tokens in a snippet.
    """

    model_config = SettingsConfigDict(
        env_prefix="CONVOSEARCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False
    database_path: str = ":memory:"

    index_name: str = "full_text_search"
    index_version: int = 1
    max_search_results: int = 500

    snippet_start: str = "<mark>"
    snippet_end: str = "</mark>"
    snippet_ellipsis: str = "..."
    snippet_tokens: int = 16

    @computed_field
    @property
    def extension_name(self) -> str:
        """Versioned name the search index is registered under.

        Returns:
            Index name with its schema version suffix.
        """
        return f"{self.index_name}_v{self.index_version}"
