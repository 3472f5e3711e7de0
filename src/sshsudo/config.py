import os
from pathlib import Path
from typing import Any, Optional

# tomllib is stdlib in Python 3.11+. Fall back to tomli for older versions.
try:
    import tomllib
except ImportError:  # pragma: no cover - platform dependent
    import tomli as tomllib  # type: ignore

import tomli_w


_ALLOWED_KEYS = {
    'port': 'int',
    'username': 'str',
    'identity_file': 'path',
    'connect_timeout': 'float',
    'timeout': 'float',
    'strict_host_keys': 'bool',
    'password_env': 'str',
}

_DEFAULTS: dict[str, Any] = {
    'port': 22,
    'username': None,
    'identity_file': None,
    'connect_timeout': 30.0,
    'timeout': None,
    'strict_host_keys': True,
    'password_env': None,
}


def _config_file_path() -> Path:
    xdg = os.getenv('XDG_CONFIG_HOME')
    if xdg:
        base = Path(xdg)
    else:
        base = Path.home() / '.config'
    return base / 'sshsudo' / 'config.toml'


def load_config() -> dict[str, Any]:
    """Load TOML configuration from XDG config path. Returns empty dict if absent or unreadable."""
    p = _config_file_path()
    if not p.exists():
        return {}
    try:
        with p.open('rb') as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError):
        return {}
    return data if isinstance(data, dict) else {}


def save_config(cfg: dict[str, Any]) -> bool:
    """Write ``cfg`` to the XDG config TOML file. Returns True on success."""
    p = _config_file_path()
    try:
        p.parent.mkdir(parents=True, exist_ok=True)
        with p.open('wb') as f:
            tomli_w.dump(cfg, f)
    except (OSError, TypeError, ValueError):
        return False
    return True


def _parse_value_by_type(type_name: str, raw_value: Any):
    """Parse raw_value according to a small set of supported type names.

    Supported types: int, float, str, bool, path (stored as str).
    Raises ValueError on parse error.
    """
    if raw_value is None:
        return None
    if type_name == 'int':
        try:
            return int(raw_value)
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid int value: {raw_value}") from e
    if type_name == 'float':
        try:
            return float(raw_value)
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid float value: {raw_value}") from e
    if type_name == 'bool':
        if isinstance(raw_value, bool):
            return raw_value
        s = str(raw_value).strip().lower()
        if s in ('1', 'true', 'yes', 'on'):
            return True
        if s in ('0', 'false', 'no', 'off'):
            return False
        raise ValueError(f"Invalid boolean value: {raw_value}")
    if type_name == 'path':
        return str(Path(str(raw_value)).expanduser())
    return str(raw_value)


def set_config_value(key: str, value: Any, host: Optional[str] = None) -> bool:
    """Set a single config key (with validation) and persist it.

    With ``host`` the value goes into the ``[hosts."<host>"]`` table.
    Returns False on validation or IO errors.
    """
    if key not in _ALLOWED_KEYS:
        return False
    try:
        parsed = _parse_value_by_type(_ALLOWED_KEYS[key], value)
    except ValueError:
        return False

    cfg = load_config()
    if host is None:
        cfg[key] = parsed
    else:
        hosts = cfg.get('hosts')
        if not isinstance(hosts, dict):
            hosts = {}
        host_cfg = hosts.get(host)
        if not isinstance(host_cfg, dict):
            host_cfg = {}
        host_cfg[key] = parsed
        hosts[host] = host_cfg
        cfg['hosts'] = hosts
    return save_config(cfg)


def get_allowed_keys() -> dict:
    return _ALLOWED_KEYS.copy()


def get_effective_value(key: str, host: Optional[str] = None) -> dict[str, Any] | None:
    """Return a dict with env/host/config/code default/effective for a key.

    Precedence: environment SSHSUDO_<KEY> > [hosts."<host>"] table > top-level
    config > code default. Returns None if key is not allowed.
    """
    if key not in _ALLOWED_KEYS:
        return None
    type_name = _ALLOWED_KEYS[key]

    env = os.getenv('SSHSUDO_' + key.upper())
    cfg = load_config()
    cfg_val = cfg.get(key)
    host_val = None
    if host is not None:
        hosts = cfg.get('hosts')
        host_cfg = hosts.get(host) if isinstance(hosts, dict) else None
        if isinstance(host_cfg, dict):
            host_val = host_cfg.get(key)
    default = _DEFAULTS.get(key)

    effective: Any
    if env is not None:
        try:
            effective = _parse_value_by_type(type_name, env)
        except ValueError:
            # a malformed environment override is ignored
            effective = host_val if host_val is not None else cfg_val if cfg_val is not None else default
    elif host_val is not None:
        effective = host_val
    elif cfg_val is not None:
        effective = cfg_val
    else:
        effective = default

    return {'env': env, 'host': host_val, 'config': cfg_val, 'code_default': default, 'effective': effective}


def get_connection_settings(host: Optional[str] = None) -> dict[str, Any]:
    """Return the effective value of every allowed key for ``host``."""
    settings = {}
    for key in _ALLOWED_KEYS:
        info = get_effective_value(key, host)
        settings[key] = info['effective'] if info else None
    return settings
