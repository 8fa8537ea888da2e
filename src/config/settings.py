"""
Application settings and configuration

Uses pydantic-settings for type-safe configuration via environment variables.
All settings use MDC_ prefix (e.g., MDC_AUTO_UNWRAP=false).

Settings can also be loaded from a .env file in the project root.
"""

from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """
    Parser and renderer configuration via environment variables.

    Environment variables use MDC_ prefix. List values are given as JSON.

    Examples:
        MDC_AUTO_CLOSE=false
        MDC_CONTAINER_TAGS='["alert", "card", "details"]'
        MDC_YAML_PROPS_THRESHOLD=80
    """

    model_config = SettingsConfigDict(
        env_prefix="MDC_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Parse defaults
    auto_unwrap: bool = Field(
        default=True,
        description="Collapse a container component's single paragraph child into direct children",
    )

    auto_close: bool = Field(
        default=True,
        description="Repair unclosed syntax before tokenizing",
    )

    container_tags: List[str] = Field(
        default=["alert", "callout", "card", "info", "note", "tip", "warning"],
        description="Component tags eligible for auto-unwrap",
    )

    summary_delimiter: str = Field(
        default="<!-- more -->",
        description="HTML comment separating the excerpt from the rest of the document",
    )

    # Table of contents
    toc_depth: int = Field(
        default=2,
        description="Default nesting depth of the generated table of contents (1-5)",
    )

    toc_search_depth: int = Field(
        default=2,
        description="How deep to search component children for headings",
    )

    # Stringify configuration
    yaml_props_threshold: int = Field(
        default=64,
        description="Switch block component attributes to a YAML props fence beyond this length",
    )

    task_list_enabled: bool = Field(
        default=False,
        description="Render task list checkboxes as interactive (not disabled)",
    )

    # Logging
    verbosity: int = Field(
        default=0,
        description="Default LOG() verbosity for parse calls (0 = silent, 3 = trace)",
    )


# Singleton instance - import this in your code
appsettings = AppSettings()
