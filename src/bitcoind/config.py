"""
Connection settings for bitcoind-rpc.

Settings come from keyword overrides, then the process environment, then
``~/.bitcoind-rpc/.env``. Credentials may instead be read from the
``.cookie`` file Bitcoin Core writes into its data directory.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


# Default config directory
BITCOIND_RPC_DIR = Path.home() / ".bitcoind-rpc"
BITCOIND_RPC_ENV = BITCOIND_RPC_DIR / ".env"

DEFAULT_ADDR = "127.0.0.1:8332"


@dataclass(frozen=True)
class RpcConfig:
    addr: str = DEFAULT_ADDR
    user: str = ""
    password: str = ""
    timeout: Optional[float] = None
    wallet: str = ""


def read_cookie_file(path: Path) -> tuple[str, str]:
    """
    Read RPC credentials from a Bitcoin Core cookie file.

    Args:
        path: Path to the ``.cookie`` file

    Returns:
        Tuple of (user, password)

    Raises:
        ValueError: If the file is missing, unreadable or malformed
    """
    try:
        content = path.read_text(encoding="utf-8").strip()
    except FileNotFoundError:
        raise ValueError(f"Cookie file not found at {path} -- check BITCOIND_COOKIE_FILE")
    except PermissionError:
        raise ValueError(f"Permission denied reading cookie file at {path}")
    if ":" not in content:
        raise ValueError(f"Cookie file at {path} is not in user:password form")
    user, password = content.split(":", 1)
    return user, password


def _check_timeout(timeout: Optional[float]) -> Optional[float]:
    if timeout is not None and timeout <= 0:
        raise ValueError(f"timeout must be positive, got {timeout!r}")
    return timeout


def _parse_timeout(value: Optional[str]) -> Optional[float]:
    if value is None or value.strip() == "":
        return None
    try:
        timeout = float(value)
    except ValueError:
        raise ValueError(f"BITCOIND_TIMEOUT must be a number of seconds, got {value!r}")
    if timeout <= 0:
        raise ValueError(f"BITCOIND_TIMEOUT must be positive, got {value!r}")
    return timeout


def load_config(
    env_path: Optional[Path] = None,
    *,
    addr: Optional[str] = None,
    user: Optional[str] = None,
    password: Optional[str] = None,
    cookie_file: Optional[Path] = None,
    timeout: Optional[float] = None,
    wallet: Optional[str] = None,
) -> RpcConfig:
    """
    Resolve connection settings.

    Args:
        env_path: Path to .env file (default: ~/.bitcoind-rpc/.env)
        addr, user, password, cookie_file, timeout, wallet: Values that take
            precedence over the environment when not None

    Returns:
        RpcConfig ready for Bitcoind.from_config

    Raises:
        ValueError: If the timeout is not positive or the cookie file is malformed
    """
    env_path = env_path or BITCOIND_RPC_ENV

    if env_path.exists():
        load_dotenv(env_path, override=False)

    addr = addr if addr is not None else os.environ.get("BITCOIND_ADDR", DEFAULT_ADDR)
    user = user if user is not None else os.environ.get("BITCOIND_USER", "")
    password = password if password is not None else os.environ.get("BITCOIND_PASSWORD", "")
    if timeout is None:
        timeout = _parse_timeout(os.environ.get("BITCOIND_TIMEOUT"))
    else:
        timeout = _check_timeout(timeout)
    wallet = wallet if wallet is not None else os.environ.get("BITCOIND_WALLET", "")

    if cookie_file is None and os.environ.get("BITCOIND_COOKIE_FILE"):
        cookie_file = Path(os.environ["BITCOIND_COOKIE_FILE"]).expanduser()
    if cookie_file is not None and not (user and password):
        user, password = read_cookie_file(cookie_file)

    return RpcConfig(
        addr=addr,
        user=user,
        password=password,
        timeout=timeout,
        wallet=wallet,
    )
