import math
import os
from dataclasses import dataclass
from typing import Dict, Optional

from dotenv import dotenv_values

from .logging import get_logger
from .paths import expand_abs, find_project_root, var_dir

log = get_logger("config")

DEFAULT_MODEL = "gpt-4.1-mini"
DEFAULT_AI_TIMEOUT = 5.0
DEFAULT_VISION_TIMEOUT = 30.0
DEFAULT_CACHE_SIZE = 256
DEFAULT_CACHE_TTL = 3600.0
DEFAULT_TIP_LOCALE = "India"
STORE_FILENAME = "expenses.json"


def _find_upwards(start_dir: str, filename: str) -> Optional[str]:
    """Return first matching file found when walking up from start_dir.

    This makes running tools from subdirectories (e.g., `src/`) still find
    project-level config files like `.env`.
    """
    d = os.path.abspath(start_dir or ".")
    while True:
        candidate = os.path.join(d, filename)
        if os.path.isfile(candidate):
            return candidate
        parent = os.path.dirname(d)
        if parent == d:
            return None
        d = parent


def _read_dotenv(dotenv_dir: str) -> Dict[str, str]:
    """Read the nearest .env into a mapping without touching os.environ."""
    path = _find_upwards(dotenv_dir, ".env")
    if not path:
        log.debug(f"No .env found starting from: {os.path.abspath(dotenv_dir)}")
        return {}
    try:
        values = dotenv_values(path)
    except (OSError, UnicodeDecodeError) as e:
        log.warning(f"Failed reading .env: {e}")
        return {}
    env = {k: v.strip() for k, v in values.items() if k and v is not None}
    log.debug(f"Loaded {len(env)} key(s) from .env at {path}")
    return env


def _lookup(env: Dict[str, str], key: str) -> Optional[str]:
    v = os.environ.get(key)
    if v is None:
        v = env.get(key) or env.get(key.lower())
    if v is None:
        return None
    v = v.strip()
    return v or None


def _as_float(raw: Optional[str], key: str, default: float, *, minimum: float = 0.0) -> float:
    """Parse a positive, finite number; anything else logs and yields ``default``."""
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        log.warning("%s=%r is not a number; using default %s", key, raw, default)
        return default
    if not math.isfinite(value) or value <= 0 or value < minimum:
        log.warning("%s=%r must be a positive number of at least %s; using default %s", key, raw, minimum, default)
        return default
    return value


def _as_int(raw: Optional[str], key: str, default: int, *, minimum: int = 1) -> int:
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        log.warning("%s=%r is not an integer; using default %s", key, raw, default)
        return default
    if value < minimum:
        log.warning("%s=%r is below %s; using default %s", key, raw, minimum, default)
        return default
    return value


def load_openai(dotenv_dir: str) -> Optional[str]:
    """Return OpenAI API key from env or .env.

    Reads OPENAI_API_KEY (or lowercase openai_api_key). A missing key is not
    an error: every remote path then degrades to its local fallback.
    """
    api_key = os.environ.get("OPENAI_API_KEY")
    if api_key and api_key.strip():
        return api_key.strip()
    env = _read_dotenv(dotenv_dir)
    v = env.get("OPENAI_API_KEY") or env.get("openai_api_key")
    return v.strip() if v else None


@dataclass(frozen=True)
class Settings:
    openai_api_key: Optional[str]
    openai_base_url: Optional[str] = None
    model: str = DEFAULT_MODEL
    vision_model: str = DEFAULT_MODEL
    ai_timeout: float = DEFAULT_AI_TIMEOUT
    vision_timeout: float = DEFAULT_VISION_TIMEOUT
    cache_size: int = DEFAULT_CACHE_SIZE
    cache_ttl: float = DEFAULT_CACHE_TTL
    tip_locale: str = DEFAULT_TIP_LOCALE
    store_path: str = os.path.join("var", STORE_FILENAME)

    @property
    def ai_enabled(self) -> bool:
        return bool(self.openai_api_key)


def load_settings(dotenv_dir: Optional[str] = None) -> Settings:
    """Resolve runtime settings from the environment, then the nearest .env."""
    base = dotenv_dir or os.getcwd()
    env = _read_dotenv(base)

    api_key = load_openai(base)
    if api_key:
        log.info("OpenAI API key found; remote AI features enabled")
    else:
        log.warning("OPENAI_API_KEY not found; AI features will use local fallbacks")

    model = _lookup(env, "EXPENSE_AI_MODEL") or DEFAULT_MODEL
    store_raw = _lookup(env, "EXPENSE_STORE_PATH")
    if store_raw:
        store_path = expand_abs(store_raw)
    else:
        store_path = os.path.join(var_dir(find_project_root(base)), STORE_FILENAME)

    return Settings(
        openai_api_key=api_key,
        openai_base_url=_lookup(env, "OPENAI_BASE_URL"),
        model=model,
        vision_model=_lookup(env, "EXPENSE_VISION_MODEL") or model,
        ai_timeout=_as_float(_lookup(env, "EXPENSE_AI_TIMEOUT"), "EXPENSE_AI_TIMEOUT", DEFAULT_AI_TIMEOUT, minimum=0.1),
        vision_timeout=_as_float(
            _lookup(env, "EXPENSE_VISION_TIMEOUT"), "EXPENSE_VISION_TIMEOUT", DEFAULT_VISION_TIMEOUT, minimum=0.1
        ),
        cache_size=_as_int(_lookup(env, "EXPENSE_CACHE_SIZE"), "EXPENSE_CACHE_SIZE", DEFAULT_CACHE_SIZE),
        cache_ttl=_as_float(_lookup(env, "EXPENSE_CACHE_TTL"), "EXPENSE_CACHE_TTL", DEFAULT_CACHE_TTL),
        tip_locale=_lookup(env, "EXPENSE_TIP_LOCALE") or DEFAULT_TIP_LOCALE,
        store_path=store_path,
    )
