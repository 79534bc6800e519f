from dotenv import load_dotenv
import logging
import os
import yaml

DEFAULTS = {
    "port": 3000,
    "mongo_uri": "mongodb://127.0.0.1:27017/appointmentManager",
    "mongo_timeout_ms": 5000,
    "jwt_secret": None,
    "token_ttl_minutes": 60,
    "store": "mongo",
    "data_file": "appointments.json",
    "auth_enabled": False,
    # every 2 minutes
    "keepalive_enabled": True,
    "keepalive_interval_seconds": 120,
    "log_level": "INFO",
    "static_dir": None,
}

# env var -> (config key, converter)
ENV_OVERRIDES = {
    "PORT": ("port", int),
    "MONGO_URI": ("mongo_uri", str),
    "MONGO_TIMEOUT_MS": ("mongo_timeout_ms", int),
    "JWT_SECRET": ("jwt_secret", str),
    "TOKEN_TTL_MINUTES": ("token_ttl_minutes", int),
    "STORE_BACKEND": ("store", str),
    "DATA_FILE": ("data_file", str),
    "AUTH_ENABLED": ("auth_enabled", lambda v: v.strip().lower() in ("1", "true", "yes", "on")),
    "KEEPALIVE_ENABLED": ("keepalive_enabled", lambda v: v.strip().lower() in ("1", "true", "yes", "on")),
    "KEEPALIVE_INTERVAL_SECONDS": ("keepalive_interval_seconds", float),
    "LOG_LEVEL": ("log_level", str),
    "STATIC_DIR": ("static_dir", str),
}


class ConfigError(Exception):
    """Raised when the configuration cannot run the app."""


def load_config(path: str = None) -> dict:
    """Defaults, then the YAML file (if any), then environment variables."""
    load_dotenv()
    config = dict(DEFAULTS)

    path = path or os.getenv("CONFIG_FILE", "config.yaml")
    if os.path.exists(path):
        try:
            with open(path, "r") as f:
                config.update(yaml.safe_load(f) or {})
        except Exception as e:
            logging.error(f"Config load failed: {e}")

    for name, (key, convert) in ENV_OVERRIDES.items():
        value = os.getenv(name)
        if value is None or value == "":
            continue
        try:
            config[key] = convert(value)
        except ValueError:
            logging.error(f"Ignoring invalid value for {name}: {value!r}")

    validate_config(config)
    return config


def validate_config(config: dict):
    if config["store"] not in ("mongo", "file"):
        raise ConfigError(f"Unknown store backend: {config['store']}")
    if config["auth_enabled"] and not config.get("jwt_secret"):
        raise ConfigError("JWT_SECRET is required when auth is enabled")
