"""
Configuration system for the Service Ready Exporter.

Exports:
    ExporterConfig: Main configuration container
    load_config: Load configuration from YAML/env
"""

from service_ready_exporter.config.models import (
    ExporterConfig,
    ServerSettings,
    KubernetesSettings,
    ProbeSettings,
    ScrapeSettings,
)
from service_ready_exporter.config.loader import load_config

__all__ = [
    "ExporterConfig",
    "ServerSettings",
    "KubernetesSettings",
    "ProbeSettings",
    "ScrapeSettings",
    "load_config",
]
