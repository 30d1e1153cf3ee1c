"""Configuration management for Reel-Works Video Studio.

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the REELWORKS_ prefix,
allowing easy customization without code changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (REELWORKS_* prefix)
2. .env file in the project root
3. Default values defined in ReelworksConfig

Example .env file:
    REELWORKS_API_KEY=0123456789abcdef
    REELWORKS_POLL_INTERVAL=4.0
    REELWORKS_MAX_POLL_ATTEMPTS=450
    REELWORKS_UNKNOWN_STATE_POLICY=fail

Global Configuration Instance
------------------------------
A global `config` instance is created automatically at module import time.
This ensures a single source of truth for all configuration values across
the application.

Usage Example
-------------
    from reelworks.core.config import config

    print(config.model_id)
    print(config.poll_interval)

Polling Constraints
-------------------
The remote job API reports no fractional progress, and it rate-limits status
checks. The poller therefore:
- waits ``poll_interval`` seconds between status checks (default 4.0)
- nudges progress by ``poll_progress_increment`` per pending poll, clamped to
  ``poll_progress_cap`` so the bar never reaches 100 before a terminal state
- gives up after ``max_poll_attempts`` polls or ``poll_timeout`` seconds,
  whichever comes first

See Also
--------
- ReelworksConfig: Full configuration class documentation
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import GenerationMode

DEFAULT_SIMULATED_MESSAGES = [
    "Initializing prompt-aware realtime synthesis...",
    "Neural processing visual prompt...",
    "Compositing frames and lighting...",
]


class ReelworksConfig(BaseSettings):
    """Main configuration for Reel-Works Video Studio.

    Values are loaded from environment variables with the REELWORKS_ prefix,
    with fallback to defaults defined here.

    Attributes
    ----------
    Remote Job API:
        api_base_url : str
            Base URL of the job API (createTask / recordInfo live below it)
        model_id : str
            Fixed model identifier sent with every submission
        api_key : str | None
            Default bearer credential used when a request carries none
        request_timeout : float
            Per-request HTTP timeout in seconds

    Polling:
        poll_interval : float
            Seconds to wait before every status check
        poll_progress_increment : int
            Progress added for each waiting/processing poll
        poll_progress_cap : int
            Upper bound for progress while the job is still pending (88-95)
        max_poll_attempts : int
            Maximum number of status checks before timing out
        poll_timeout : float
            Wall-clock budget in seconds for the whole polling session
        unknown_state_policy : Literal["fail", "continue"]
            What to do when the remote reports an unrecognised state

    Simulated Mode:
        simulated_step_delay : float
            Seconds between simulated progress steps
        simulated_messages : list[str]
            Ordered status phrases, one per simulated step (at least 3)

    Server:
        default_mode : GenerationMode
            Mode used when an API request does not specify one
        server_host : str
            Server bind address
        server_port : int
            Server port (1024-65535)
        log_level : str
            Root logging level applied by the API entry point

    Examples
    --------
        >>> custom_config = ReelworksConfig(
        ...     poll_interval=0.0,
        ...     simulated_step_delay=0.0,
        ... )
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="REELWORKS_",
        case_sensitive=False,
    )

    # Remote job API
    api_base_url: str = Field(
        default="https://api.kie.ai/api/v1",
        description="Base URL of the remote job API",
    )
    model_id: str = Field(
        default="sora-2-image-to-video",
        description="Model identifier sent with every job submission",
    )
    api_key: str | None = Field(
        default=None,
        description="Default bearer credential used when a request carries none",
    )
    request_timeout: float = Field(
        default=30.0,
        description="Per-request HTTP timeout in seconds",
        gt=0,
    )

    # Polling
    poll_interval: float = Field(
        default=4.0,
        description="Seconds to wait before every status check",
        ge=0,
    )
    poll_progress_increment: int = Field(
        default=5,
        description="Progress added for each waiting/processing poll",
        ge=0,
        le=20,
    )
    poll_progress_cap: int = Field(
        default=90,
        description="Progress ceiling while the remote job is still pending",
        ge=88,
        le=95,
    )
    max_poll_attempts: int = Field(
        default=450,
        description="Maximum number of status checks before timing out",
        ge=1,
    )
    poll_timeout: float = Field(
        default=1800.0,
        description="Wall-clock budget in seconds for one polling session",
        gt=0,
    )
    unknown_state_policy: Literal["fail", "continue"] = Field(
        default="fail",
        description="Fail fast or keep polling on unrecognised remote states",
    )

    # Simulated mode
    simulated_step_delay: float = Field(
        default=1.2,
        description="Seconds between simulated progress steps",
        ge=0,
    )
    simulated_messages: list[str] = Field(
        default_factory=lambda: list(DEFAULT_SIMULATED_MESSAGES),
        description="Ordered status phrases, one per simulated step",
        min_length=3,
    )

    # Server settings
    default_mode: GenerationMode = Field(
        default=GenerationMode.SIMULATED,
        description="Mode used when an API request does not specify one",
    )
    server_host: str = Field(
        default="0.0.0.0",
        description="Server bind address (0.0.0.0 for local network)",
    )
    server_port: int = Field(
        default=7860,
        description="Server port",
        ge=1024,
        le=65535,
    )
    log_level: str = Field(
        default="INFO",
        description="Root logging level",
    )


# Global configuration instance
# Loads values from environment variables (REELWORKS_* prefix) and .env file.
config = ReelworksConfig()
