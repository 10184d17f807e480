"""Application settings and configuration.

This module provides Pydantic settings classes for application configuration,
loaded from environment variables with support for nested configuration.
"""

import logging
from pathlib import Path

import pydantic_settings
from pydantic import BaseModel, Field, field_validator

from coding_threads.platform.threads.process import RestartPolicy


class AppHTTPSettings(BaseModel):
    url: str = Field("")
    host: str = Field("0.0.0.0")
    port: int = Field(8000)
    log_level: str = Field("INFO")
    log_json: bool | None = Field(
        None, description="Override log format: True=JSON, False=console, None=auto"
    )

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, v):
        v_upper = v.upper()
        if v_upper not in logging._nameToLevel:
            raise ValueError(f'invalid value "{v}"')
        return v_upper


class OpenTelemetrySettings(BaseModel):
    host: str = Field("localhost")
    port: int = Field(4317)
    enabled: bool = Field(False)
    excluded_urls: str = Field("metrics,health,info")


class BugsnagSettings(BaseModel):
    api_key: str = Field("")
    release_stage: str = Field("local")

    @field_validator("release_stage")
    @classmethod
    def _validate_bugsnag_release_stage(cls, v):
        if v not in ["development", "production", "local"]:
            raise ValueError(f'invalid bugsnag release stage "{v}"')
        return v


class LitellmSettings(BaseModel):
    proxy_api_base: str
    proxy_api_key: str


class LlmSettings(BaseModel):
    model: str = Field("litellm_proxy/anthropic/claude-sonnet-4-5")
    temperature: float = Field(0.2, ge=0.0, le=2.0)


class AgentSettings(BaseModel):
    """Conversation engine limits.

    Attributes:
        max_turns: Model calls allowed in one turn before it is aborted
        max_consecutive_failures: All-error tool rounds tolerated in until_success mode
        subtask_max_turns: Model calls allowed to a delegated sub-agent
    """

    max_turns: int = Field(50, gt=0)
    max_consecutive_failures: int = Field(3, ge=0)
    subtask_max_turns: int = Field(30, gt=0)


class ThreadsSettings(BaseModel):
    """Thread process manager configuration.

    Attributes:
        default_working_dir: Working directory of threads started without one
        list_timeout: Seconds each thread gets to answer a listing query
        call_timeout: Seconds a thread gets to answer a direct query
        restart_policy: What the supervisor does when a thread crashes
        max_restarts: Crashes tolerated within restart_window before giving up
        restart_window: Sliding window, in seconds, for max_restarts
        subscriber_queue_size: Pending notifications buffered per subscriber
    """

    default_working_dir: Path = Field(default_factory=Path.cwd)
    list_timeout: float = Field(1.0, gt=0)
    call_timeout: float = Field(5.0, gt=0)
    restart_policy: RestartPolicy = Field(RestartPolicy.TRANSIENT)
    max_restarts: int = Field(3, ge=0)
    restart_window: float = Field(5.0, gt=0)
    subscriber_queue_size: int = Field(100, gt=0)


class Settings(pydantic_settings.BaseSettings):
    model_config = pydantic_settings.SettingsConfigDict(env_nested_delimiter="__")

    app_http: AppHTTPSettings = AppHTTPSettings()
    opentelemetry: OpenTelemetrySettings = OpenTelemetrySettings()
    bugsnag: BugsnagSettings = BugsnagSettings()

    # LiteLLM configuration
    litellm: LitellmSettings

    # Model and engine configuration
    llm: LlmSettings = LlmSettings()
    agent: AgentSettings = AgentSettings()

    # Thread supervision configuration
    threads: ThreadsSettings = ThreadsSettings()
