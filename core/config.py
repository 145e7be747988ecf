# =============================================================================
# core/config.py  —  Environment Configuration
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Reads the server's configuration from the environment (optionally seeded
#   from a .env file) and validates it into an immutable Settings value.
#
# HOW IT IS USED:
#   tools/mcp_server.py calls load_settings() exactly once at startup and
#   hands the resulting Settings to every component that needs it.  There is
#   no module-level config object to import.
#
# VALIDATION:
#   Settings is a pydantic-settings model; the field constraints are the
#   rules.  Every violation is reported together, one "KEY: message" line
#   each, and a ConfigError makes the server exit non-zero.
# =============================================================================

from typing import Any, Literal, Mapping, Optional

from dotenv import load_dotenv
from pydantic import Field, HttpUrl, PositiveFloat, TypeAdapter, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.errors import ConfigError


NETWORKS = ("mainnet", "testnet")
LOG_LEVELS = ("debug", "info", "warn", "error")

_MIRROR_NODES = {
    "mainnet": ("https://mainnet-public.mirrornode.hedera.com:443",),
    "testnet": ("https://testnet.mirrornode.hedera.com:443",),
}

_JSON_RPC_RELAYS = {
    "mainnet": "https://mainnet.hashio.io/api",
    "testnet": "https://testnet.hashio.io/api",
}

_HTTP_URL = TypeAdapter(HttpUrl)


class Settings(BaseSettings):
    """Validated server configuration.

    Field aliases are the environment variable names; attribute names are
    what the rest of the code reads.
    """

    model_config = SettingsConfigDict(
        frozen=True,
        extra="ignore",
        str_strip_whitespace=True,
        env_ignore_empty=True,
    )

    network: Literal["mainnet", "testnet"] = Field(default="testnet", validation_alias="HEDERA_NETWORK")
    operator_id: str = Field(validation_alias="HEDERA_OPERATOR_ID", pattern=r"^\d+\.\d+\.\d+$")
    operator_key: str = Field(validation_alias="HEDERA_OPERATOR_KEY", min_length=1)
    saucerswap_api_url: str = Field(validation_alias="SAUCERSWAP_API_URL")
    router_address: str = Field(validation_alias="SAUCERSWAP_ROUTER_ADDRESS", pattern=r"^0x[a-fA-F0-9]{40}$")
    json_rpc_url: Optional[str] = Field(default=None, validation_alias="HEDERA_JSON_RPC_URL")
    # Reserved for request signing and key encryption; no tool reads them yet.
    jwt_secret: str = Field(validation_alias="JWT_SECRET", min_length=32)
    encryption_key: str = Field(validation_alias="ENCRYPTION_KEY", min_length=32)
    log_level: Literal["debug", "info", "warn", "error"] = Field(default="info", validation_alias="LOG_LEVEL")
    quote_timeout: PositiveFloat = Field(
        default=10.0,
        validation_alias="QUOTE_TIMEOUT_SECONDS",
        allow_inf_nan=False,
    )

    @model_validator(mode="before")
    @classmethod
    def _default_relay(cls, data: Any) -> Any:
        # The JSON-RPC relay defaults by network.
        if isinstance(data, dict) and not data.get("HEDERA_JSON_RPC_URL"):
            network = str(data.get("HEDERA_NETWORK") or "testnet").strip().lower()
            relay = _JSON_RPC_RELAYS.get(network)
            if relay:
                data = {**data, "HEDERA_JSON_RPC_URL": relay}
        return data

    @field_validator("network", "log_level", mode="before")
    @classmethod
    def _lowercase(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("saucerswap_api_url", "json_rpc_url")
    @classmethod
    def _http_url(cls, value: Optional[str]) -> Optional[str]:
        if value is not None:
            try:
                _HTTP_URL.validate_python(value)
            except ValidationError:
                raise ValueError("must be a valid http(s) URL") from None
        return value

    @property
    def mirror_endpoints(self) -> tuple[str, ...]:
        return _MIRROR_NODES[self.network]


def _issue(error: dict[str, Any]) -> str:
    key = ".".join(str(part) for part in error["loc"]) or "config"
    return f"{key}: {error['msg']}"


def load_settings(
    environ: Optional[Mapping[str, str]] = None,
    *,
    use_dotenv: bool = True,
) -> Settings:
    """Build Settings from the environment.

    Args:
        environ: Mapping to read instead of ``os.environ`` (tests pass a dict).
        use_dotenv: Load a ``.env`` file into ``os.environ`` first.  Ignored
            when ``environ`` is given.

    Raises:
        ConfigError: listing every key that failed validation.
    """
    try:
        if environ is None:
            if use_dotenv:
                load_dotenv()
            return Settings()
        values = {key: value for key, value in environ.items() if value and value.strip()}
        return Settings.model_validate(values)
    except ValidationError as exc:
        raise ConfigError([_issue(error) for error in exc.errors(include_url=False)]) from None
