"""
Pydantic models for exporter configuration.

Configuration is loaded from YAML files and environment variables,
then passed explicitly to the collector and the HTTP layer.
"""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class ServerSettings(BaseModel):
    """HTTP exposition settings."""

    host: str = Field(
        default="0.0.0.0",
        description="Host to bind the metrics server to",
    )
    port: int = Field(
        default=9150,
        ge=1,
        le=65535,
        description="Port to listen on",
    )
    metrics_path: str = Field(
        default="/metrics",
        description="Path under which to expose metrics",
    )
    log_level: Literal["debug", "info", "warning", "error"] = Field(
        default="info",
        description="Logging level",
    )
    log_file: Optional[str] = Field(
        default=None,
        description="Optional file to mirror log output to",
    )

    @field_validator("metrics_path")
    @classmethod
    def validate_metrics_path(cls, v: str) -> str:
        """Metrics path must be absolute and must not shadow the landing page."""
        if not v.startswith("/"):
            raise ValueError("metrics_path must start with '/'")
        if v == "/":
            raise ValueError("metrics_path cannot be '/'")
        return v


class KubernetesSettings(BaseModel):
    """Cluster connection settings."""

    kubeconfig: str = Field(
        default="~/.kube/config",
        description="Kubeconfig file used when no other credential is found",
    )
    kubeconfig_content_env: str = Field(
        default="KUBECONFIG_CONTENT",
        description="Environment variable holding raw kubeconfig content",
    )
    request_timeout: float = Field(
        default=10.0,
        gt=0,
        le=300,
        description="Timeout in seconds for each Kubernetes API list call",
    )


class ProbeSettings(BaseModel):
    """
    Readiness probe settings.

    The probe path is always /readyz over plain HTTP; only the timing
    and the degree of parallelism are tunable.
    """

    timeout: float = Field(
        default=5.0,
        gt=0,
        le=60,
        description="Timeout in seconds for a single readiness probe",
    )
    max_workers: int = Field(
        default=16,
        ge=1,
        le=256,
        description="Maximum number of probes in flight at once",
    )


class ScrapeSettings(BaseModel):
    """Per-scrape behaviour."""

    timeout: float = Field(
        default=10.0,
        gt=0,
        le=600,
        description="Upper bound in seconds for probing all hosts in one scrape",
    )
    timeout_offset: float = Field(
        default=0.5,
        ge=0,
        description="Seconds subtracted from the scraper's advertised timeout",
    )
    serialize: bool = Field(
        default=True,
        description="Queue overlapping scrapes instead of running them in parallel",
    )


class ExporterConfig(BaseModel):
    """
    Main configuration container for the Service Ready Exporter.
    """

    server: ServerSettings = Field(default_factory=ServerSettings)
    kubernetes: KubernetesSettings = Field(default_factory=KubernetesSettings)
    probe: ProbeSettings = Field(default_factory=ProbeSettings)
    scrape: ScrapeSettings = Field(default_factory=ScrapeSettings)

    @model_validator(mode="after")
    def validate_timeouts(self) -> "ExporterConfig":
        """A single probe must fit inside the scrape deadline."""
        if self.probe.timeout > self.scrape.timeout:
            raise ValueError(
                f"probe.timeout ({self.probe.timeout}s) must not exceed "
                f"scrape.timeout ({self.scrape.timeout}s)"
            )
        return self

    # Allow extra fields to be ignored (forward compatibility)
    model_config = ConfigDict(extra="ignore")
