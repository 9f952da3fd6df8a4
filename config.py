# config.py
"""
Configuration for the CloudLink client CLI and the stub server.
"""

import os

from dotenv import load_dotenv

from schemas import ClientConfig

load_dotenv()


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# Connection settings
CLOUDLINK_HOST = os.getenv("CLOUDLINK_HOST", "http://localhost:5002")
CLOUDLINK_USER = os.getenv("CLOUDLINK_USER", "admin")
CLOUDLINK_PASSWORD = os.getenv("CLOUDLINK_PASSWORD", "")
CLOUDLINK_VERIFY_TLS = _env_flag("CLOUDLINK_VERIFY_TLS")

# unset means no timeout
_timeout = os.getenv("CLOUDLINK_TIMEOUT")
CLOUDLINK_TIMEOUT = float(_timeout) if _timeout else None

# Stub server
DUMMY_API_PORT = int(os.getenv("DUMMY_API_PORT", "5002"))


def get_client_config(**overrides) -> ClientConfig:
    """
    Build a ClientConfig from the environment.

    Args:
        **overrides: Field values that take precedence over the environment.

    Returns:
        Frozen ClientConfig.
    """
    values = {
        "host": CLOUDLINK_HOST,
        "username": CLOUDLINK_USER,
        "password": CLOUDLINK_PASSWORD,
        "verify_tls": CLOUDLINK_VERIFY_TLS,
        "timeout": CLOUDLINK_TIMEOUT,
    }
    values.update({k: v for k, v in overrides.items() if v is not None})
    return ClientConfig(**values)


if __name__ == "__main__":
    print(f"Host: {CLOUDLINK_HOST}")
    print(f"User: {CLOUDLINK_USER}")
    print(f"Verify TLS: {CLOUDLINK_VERIFY_TLS}")
