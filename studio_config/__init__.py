"""
studio_config -- single public entrypoint for studio configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  Returns a frozen ``StudioConfiguration``
    built from the packaged ``defaults/engine.yaml`` or from a file the
    caller names.

Architecture position:
    Configuration -- YAML-driven.  Sits above ``studio_kernel`` and
    ``studio_engines`` (whose types it produces) and below
    ``studio_services``.  The kernel MUST NEVER import from here.

Invariants enforced:
    - Same YAML content always yields the same ``checksum``.
    - Every successful call emits one ``STUDIO_CONFIG_TRACE`` record.

Failure modes:
    - ``FileNotFoundError`` -- the named file does not exist.
    - ``yaml.YAMLError`` -- the file is not valid YAML.
    - ``ValueError`` -- a section has the wrong shape or a bad value.
"""

from __future__ import annotations

from pathlib import Path

from studio_kernel.logging_config import get_logger
from studio_config.loader import load_yaml_file, parse_configuration
from studio_config.schema import EngineConfig, StudioConfiguration

_logger = get_logger("config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults" / "engine.yaml"


def get_active_config(path: Path | str | None = None) -> StudioConfiguration:
    """Load, parse and trace the active configuration."""
    source = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    config = parse_configuration(load_yaml_file(source))

    _logger.info(
        "STUDIO_CONFIG_TRACE",
        extra={
            "trace_type": "STUDIO_CONFIG_TRACE",
            "config_id": config.config_id,
            "config_version": config.version,
            "checksum": config.checksum,
            "source": str(source),
            "template_override_count": len(config.templates),
            "has_office": config.office is not None,
        },
    )
    return config


__all__ = [
    "DEFAULT_CONFIG_PATH",
    "EngineConfig",
    "StudioConfiguration",
    "get_active_config",
]
