"""Pydantic models for ccmeta.

Provides validated configuration models. Every decode entry point takes
these options explicitly; nothing in the codec reads global state.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class UnknownFieldPolicy(str, Enum):
    """How the schema layer treats dictionary keys it does not recognize."""

    STRICT = "strict"  # reject the whole decode
    RETAIN = "retain"  # keep verbatim, written back on encode
    DROP = "drop"  # discard silently


class DecodeOptions(BaseModel):
    """Bencode decoder options."""

    max_depth: int = Field(
        default=256,
        ge=1,
        le=512,
        description="Maximum nesting depth of lists and dictionaries",
    )
    allow_trailing: bool = Field(
        default=False,
        description="Accept bytes left over after the root value",
    )
    big_integers: bool = Field(
        default=False,
        description="Accept integers outside the signed 128-bit range",
    )

    model_config = ConfigDict(frozen=True)


class SchemaOptions(BaseModel):
    """Metainfo schema options."""

    unknown_fields: UnknownFieldPolicy = Field(
        default=UnknownFieldPolicy.RETAIN,
        description="Policy for keys the schema does not recognize",
    )

    model_config = ConfigDict(frozen=True)

    @property
    def strict(self) -> bool:
        """Whether unknown keys and unknown attribute flags are rejected."""
        return self.unknown_fields is UnknownFieldPolicy.STRICT


class ObservabilityConfig(BaseModel):
    """Observability configuration."""

    log_level: LogLevel = Field(default=LogLevel.WARNING, description="Log level")
    rich_console: bool = Field(
        default=True,
        description="Render console logs with rich",
    )
    log_format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format string for the plain handler",
    )


class Config(BaseModel):
    """Main configuration model."""

    bencode: DecodeOptions = Field(
        default_factory=DecodeOptions,
        description="Bencode decoder options",
    )
    schema_: SchemaOptions = Field(
        default_factory=SchemaOptions,
        alias="schema",
        description="Metainfo schema options",
    )
    observability: ObservabilityConfig = Field(
        default_factory=ObservabilityConfig,
        description="Logging configuration",
    )

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def strict(cls) -> Config:
        """Configuration for authoring tools and tests: unknown keys fail."""
        return cls(schema=SchemaOptions(unknown_fields=UnknownFieldPolicy.STRICT))

    @classmethod
    def lenient(cls) -> Config:
        """Configuration for real-world torrents: unknown keys are kept."""
        return cls(schema=SchemaOptions(unknown_fields=UnknownFieldPolicy.RETAIN))
