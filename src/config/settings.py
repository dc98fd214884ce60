"""
Application settings and configuration

Uses pydantic-settings for type-safe configuration via environment variables.
All settings use MACRODOWN_ prefix (e.g., MACRODOWN_STRICT_MODE=true).

Settings can also be loaded from a .env file in the project root.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """
    Application configuration via environment variables.

    Environment variables use MACRODOWN_ prefix.

    Examples:
        MACRODOWN_BLOCK_MAX_LINES=500
        MACRODOWN_STRICT_MODE=true
        MACRODOWN_BAD_NODE_TAG=section
    """

    model_config = SettingsConfigDict(
        env_prefix="MACRODOWN_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Scanner configuration
    block_max_lines: int = Field(
        default=10000,
        ge=1,
        description="Maximum number of lines scanned while looking for a block macro's closing tag",
    )

    # Diagnostics configuration
    strict_mode: bool = Field(
        default=False,
        description="Strict mode: fatal diagnostics (e.g. unclosed macros) fail the CLI run",
    )

    debug_mode: bool = Field(
        default=False,
        description="Enable debug output during parsing",
    )

    # Output configuration
    bad_node_tag: str = Field(
        default="div",
        description="HTML element used to render unclosed-macro markers",
    )

    output_filename: str = Field(
        default="index.html",
        description="Name of the HTML file written by the compiler",
    )

    def lineCap_reached(self, scanned: int) -> bool:
        """
        Check whether a block scan has visited as many lines as allowed.

        Args:
            scanned: Number of lines visited so far

        Returns:
            True once `scanned` reaches block_max_lines

        Example:
            >>> settings = AppSettings(block_max_lines=3)
            >>> settings.lineCap_reached(3)
            True
        """
        return scanned >= self.block_max_lines


# Singleton instance - import this in your code
appsettings = AppSettings()
