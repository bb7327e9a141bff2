"""
Settings for the HTTP server, the serial link, logging and the simulated
cube. Each section maps to one top-level key of config.json.
"""

from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ServerConfig(BaseModel):
    """Where the HTTP API listens."""

    ip: str = Field(default="127.0.0.1", description="IP address to bind to")
    port: int = Field(default=5080, ge=1, le=65535, description="HTTP port")


class SerialConfig(BaseModel):
    """Serial link to the cube and its I/O deadlines."""

    port: str = Field(default="", description="Serial port name (e.g., /dev/ttyUSB0). Empty for auto-discover.")
    baud: int = Field(default=9600, gt=0, description="Baud rate (the firmware uses 9600)")
    seconds_per_byte: float = Field(
        default=1.0, gt=0, le=10.0,
        description="I/O deadline per transferred byte (64-byte payload waits up to 64x this)"
    )
    fence_timeout_seconds: float = Field(
        default=2.0, gt=0, le=60.0,
        description="How long to wait for a timed-out I/O call to drain before the next call"
    )
    auto_discover: bool = Field(
        default=True, description="Automatically scan for a cube if no port is set"
    )
    scan_seconds_per_byte: float = Field(
        default=0.5, gt=0, le=5.0, description="Per-byte probe deadline during auto-discovery scan"
    )


class LoggingConfig(BaseModel):
    """Root logger level and destinations."""

    level: str = Field(default="INFO", description="DEBUG, INFO, WARNING, ERROR or CRITICAL")
    file: Optional[str] = Field(default=None, description="Rotating log file, None for console only")
    stderr: bool = Field(
        default=False, description="Send console logging to stderr instead of stdout"
    )

    @field_validator("level")
    @classmethod
    def normalize_level(cls, v: str) -> str:
        level = v.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Unknown log level {v!r}, expected one of {', '.join(LOG_LEVELS)}")
        return level


FaultKind = Literal["drop", "error", "corrupt", "truncate"]


class SimulatorConfig(BaseModel):
    """Simulated cube configuration."""

    enabled: bool = Field(default=False, description="Use simulated cube instead of real hardware")
    response_latency_ms: int = Field(
        default=0, ge=0, le=5000, description="Artificial delay before each reply (ms)"
    )
    fault_reply_index: Optional[int] = Field(
        default=None, ge=0, description="Zero-based index of the reply to sabotage (None = no fault)"
    )
    fault_kind: FaultKind = Field(
        default="drop", description="drop, error (send 0x23), corrupt (flip bits) or truncate"
    )


class AppConfig(BaseModel):
    """Contents of config.json. Unknown sections are rejected."""

    model_config = ConfigDict(extra="forbid")

    server: ServerConfig = Field(default_factory=ServerConfig)
    serial: SerialConfig = Field(default_factory=SerialConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    simulator: SimulatorConfig = Field(default_factory=SimulatorConfig)
