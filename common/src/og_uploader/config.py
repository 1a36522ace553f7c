"""
Settings for a batch run.

Values come from the mapping ``cli.main`` assembles: ``.env`` loaded by
python-dotenv, the process environment, then command-line overrides. The
result is an immutable ``Settings`` object built once and handed to every
component; nothing else reads the environment.
"""
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Mapping, Optional

from .errors import ConfigError

DEFAULT_IMAGE_URL = "https://picsum.photos/800/600"
DEFAULT_STORAGE_FEE = Decimal("0.000839233398436224")
DEFAULT_DELAY_MS = 5000
DEFAULT_GAS_LIMIT = 300000
DEFAULT_GAS_MULTIPLIER = Decimal("1.5")

UPLOAD_MODES = ("segment", "sdk")
CALL_ENCODINGS = ("abi", "template")
ONCHAIN_ROOTS = ("content", "random")

REQUIRED = ("PRIVATE_KEY", "RPC_URL", "INDEXER_URL")


@dataclass(frozen=True)
class Settings:
    private_key: str
    rpc_url: str
    indexer_url: str
    contract_address: Optional[str] = None
    uploads: int = 1
    delay_ms: int = DEFAULT_DELAY_MS
    explorer_url: str = ""
    storage_fee: Decimal = DEFAULT_STORAGE_FEE
    image_url: str = DEFAULT_IMAGE_URL
    gas_price_gwei: Optional[Decimal] = None
    gas_limit_fallback: int = DEFAULT_GAS_LIMIT
    gas_multiplier: Decimal = DEFAULT_GAS_MULTIPLIER
    receipt_timeout: int = 120
    call_encoding: str = "abi"
    onchain_root: str = "content"
    upload_mode: str = "segment"
    storage_client_bin: str = "0g-storage-client"
    max_attempts: int = 1
    retry_backoff_ms: int = 2000
    preflight: bool = True
    generated_dir: str = "generated-files"

    @property
    def delay_seconds(self) -> float:
        return self.delay_ms / 1000

    @property
    def retry_backoff_seconds(self) -> float:
        return self.retry_backoff_ms / 1000


def _int(name: str, value: Optional[str], default: int, minimum: int = 1) -> int:
    # Garbage falls back to the default; an explicit out-of-range number is an error.
    try:
        parsed = int(str(value).strip())
    except (TypeError, ValueError):
        return default
    if parsed < minimum:
        raise ConfigError(f"{name} must be at least {minimum}, got {parsed}")
    return parsed


def _decimal(name: str, value: Optional[str], default: Optional[Decimal]) -> Optional[Decimal]:
    if value is None or not str(value).strip():
        return default
    try:
        parsed = Decimal(str(value).strip())
    except InvalidOperation:
        raise ConfigError(f"{name} must be a number, got {value!r}")
    if not parsed.is_finite():
        raise ConfigError(f"{name} must be a finite number, got {value!r}")
    return parsed


def _bool(value: Optional[str], default: bool) -> bool:
    if value is None or not str(value).strip():
        return default
    return str(value).strip().lower() not in ("0", "false", "no", "off")


def _choice(name: str, value: Optional[str], choices, default: str) -> str:
    if value is None or not str(value).strip():
        return default
    value = str(value).strip().lower()
    if value not in choices:
        raise ConfigError(f"{name} must be one of {', '.join(choices)}, got {value!r}")
    return value


def validate(settings: Settings) -> Settings:
    if settings.upload_mode == "segment" and not settings.contract_address:
        raise ConfigError("CONTRACT_ADDRESS is required for segment uploads")
    if settings.storage_fee <= 0:
        raise ConfigError(f"STORAGE_FEE must be positive, got {settings.storage_fee}")
    if settings.gas_multiplier <= 0:
        raise ConfigError(f"GAS_MULTIPLIER must be positive, got {settings.gas_multiplier}")
    if settings.gas_price_gwei is not None and settings.gas_price_gwei <= 0:
        raise ConfigError(f"GAS_PRICE_GWEI must be positive, got {settings.gas_price_gwei}")
    return settings


def load_settings(env: Mapping[str, str]) -> Settings:
    """
    Build ``Settings`` from ``env``. Raises ``ConfigError`` listing every
    missing required key, or naming the first invalid value.
    """
    missing = [key for key in REQUIRED if not (env.get(key) or "").strip()]
    if missing:
        raise ConfigError(f"Missing required settings: {', '.join(missing)} (set them in .env)")

    settings = Settings(
        private_key=env["PRIVATE_KEY"].strip(),
        rpc_url=env["RPC_URL"].strip(),
        indexer_url=env["INDEXER_URL"].strip().rstrip("/"),
        contract_address=(env.get("CONTRACT_ADDRESS") or "").strip() or None,
        uploads=_int("UPLOADS_TO_RUN", env.get("UPLOADS_TO_RUN"), 1),
        delay_ms=_int("DELAY_MS", env.get("DELAY_MS"), DEFAULT_DELAY_MS, minimum=0),
        explorer_url=(env.get("EXPLORER_URL") or "").strip(),
        storage_fee=_decimal("STORAGE_FEE", env.get("STORAGE_FEE"), DEFAULT_STORAGE_FEE),
        image_url=(env.get("IMAGE_URL") or "").strip() or DEFAULT_IMAGE_URL,
        gas_price_gwei=_decimal("GAS_PRICE_GWEI", env.get("GAS_PRICE_GWEI"), None),
        gas_limit_fallback=_int("GAS_LIMIT_FALLBACK", env.get("GAS_LIMIT_FALLBACK"), DEFAULT_GAS_LIMIT),
        gas_multiplier=_decimal("GAS_MULTIPLIER", env.get("GAS_MULTIPLIER"), DEFAULT_GAS_MULTIPLIER),
        receipt_timeout=_int("RECEIPT_TIMEOUT", env.get("RECEIPT_TIMEOUT"), 120),
        call_encoding=_choice("CALL_ENCODING", env.get("CALL_ENCODING"), CALL_ENCODINGS, "abi"),
        onchain_root=_choice("ONCHAIN_ROOT", env.get("ONCHAIN_ROOT"), ONCHAIN_ROOTS, "content"),
        upload_mode=_choice("UPLOAD_MODE", env.get("UPLOAD_MODE"), UPLOAD_MODES, "segment"),
        storage_client_bin=(env.get("STORAGE_CLIENT_BIN") or "").strip() or "0g-storage-client",
        max_attempts=_int("MAX_ATTEMPTS", env.get("MAX_ATTEMPTS"), 1),
        retry_backoff_ms=_int("RETRY_BACKOFF_MS", env.get("RETRY_BACKOFF_MS"), 2000, minimum=0),
        preflight=_bool(env.get("PREFLIGHT"), True),
        generated_dir=(env.get("GENERATED_DIR") or "").strip() or "generated-files",
    )
    return validate(settings)
