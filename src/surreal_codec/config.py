"""
Codec configuration.

Settings are read from ``SURREAL_CODEC_*`` environment variables (or a
``.env`` file) with Pydantic Settings. A CodecConfig is passed to
CodecRegistry explicitly; codecs never consult process-wide state.
"""
from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from surreal_codec.naming import NamingConvention


class CodecConfig(BaseSettings):
    # Naming
    use_camel_case: bool = Field(False, description="Emit camelCase wire names")

    # Logging
    enable_log: bool = Field(False, description="Log every serialized value")
    namespace: str = Field("surreal_codec", description="Prefix for logged values")
    log_level: str = Field("WARNING", description="Log level used by the CLI")

    model_config = SettingsConfigDict(
        env_prefix="SURREAL_CODEC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    @property
    def naming(self) -> NamingConvention:
        return NamingConvention.from_flag(self.use_camel_case)


@lru_cache(maxsize=1)
def get_config() -> CodecConfig:
    """
    Retrieve a cached CodecConfig built from the environment.
    """
    return CodecConfig()


__all__ = ["CodecConfig", "get_config"]
