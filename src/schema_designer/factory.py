"""Database adapter factory and profile management.

Profiles live in db.toml.  The active profile comes from the
``{env_prefix}DB_PROFILE`` env var or from the ``.db-profile`` lock file
written by a successful ``connect()``.

Usage:
    from schema_designer.factory import connect, get_adapter

    result = await connect("local")
    adapter = await get_adapter()
"""

import logging
import os
from pathlib import Path
from urllib.parse import quote

from schema_designer.adapters import AsyncMySQLAdapter, DatabaseClient
from schema_designer.config import DatabaseProfile, load_db_config
from schema_designer.schema.models import ConnectionResult

logger = logging.getLogger(__name__)

# Profile lock file path (current working directory)
_PROFILE_LOCK_FILE = Path.cwd() / ".db-profile"


# ============================================================================
# Profile Lock File Operations
# ============================================================================


class ProfileNotFoundError(Exception):
    """Raised when no database profile is configured."""

    pass


def read_profile_lock() -> str | None:
    """Read profile name from lock file.

    Returns:
        Profile name if lock file exists, None otherwise
    """
    if _PROFILE_LOCK_FILE.exists():
        return _PROFILE_LOCK_FILE.read_text().strip()
    return None


def write_profile_lock(profile_name: str) -> None:
    """Write profile name to lock file.

    Only call this after a successful connection.

    Args:
        profile_name: Name of the connected profile
    """
    _PROFILE_LOCK_FILE.write_text(profile_name)


def clear_profile_lock() -> None:
    """Remove profile lock file."""
    if _PROFILE_LOCK_FILE.exists():
        _PROFILE_LOCK_FILE.unlink()


def get_active_profile_name(env_prefix: str = "") -> str:
    """Get active profile name from env var or lock file.

    Priority:
    1. {env_prefix}DB_PROFILE env var
    2. .db-profile file (profile from previous connect)
    3. Raise ProfileNotFoundError

    Args:
        env_prefix: Prefix for the env var name (e.g. "APP_" reads APP_DB_PROFILE)

    Returns:
        Profile name

    Raises:
        ProfileNotFoundError: If no profile is configured
    """
    env_var = f"{env_prefix}DB_PROFILE"
    env_profile = os.environ.get(env_var)
    if env_profile:
        return env_profile

    lock_profile = read_profile_lock()
    if lock_profile:
        return lock_profile

    raise ProfileNotFoundError(
        "No database profile configured.\n"
        f"Run: {env_var}=<name> schema-designer connect\n"
        "Profiles are defined in db.toml (see: schema-designer profiles)"
    )


def get_active_profile(env_prefix: str = "") -> tuple[str, DatabaseProfile]:
    """Get active profile name and configuration.

    Returns:
        Tuple of (profile_name, DatabaseProfile)

    Raises:
        ProfileNotFoundError: If no profile configured
        KeyError: If profile not found in db.toml
    """
    profile_name = get_active_profile_name(env_prefix=env_prefix)
    config = load_db_config()

    if profile_name not in config.profiles:
        raise KeyError(
            f"Profile '{profile_name}' not found in db.toml.\n"
            f"Available profiles: {', '.join(config.profiles.keys())}"
        )

    return profile_name, config.profiles[profile_name]


def resolve_url(profile: DatabaseProfile) -> str:
    """Resolve profile URL with password substitution.

    Args:
        profile: Database profile from config

    Returns:
        Connection URL with password substituted
    """
    url = profile.url
    if profile.db_password and "[YOUR-PASSWORD]" in url:
        url = url.replace("[YOUR-PASSWORD]", quote(profile.db_password, safe=""))
    return url


# ============================================================================
# Connection
# ============================================================================


async def connect(
    profile_name: str | None = None,
    env_prefix: str = "",
) -> ConnectionResult:
    """Connect to the profile's server and remember the profile.

    On success the profile name is written to the lock file so later
    commands use it without the env var.

    Args:
        profile_name: Profile name from db.toml. If None, uses the
            {env_prefix}DB_PROFILE env var or the existing lock file.
        env_prefix: Prefix for the profile env var.

    Returns:
        ConnectionResult with success status and server version

    Example:
        >>> result = await connect("local")
        >>> if result.success:
        ...     print(f"Connected to {result.profile_name}")
    """
    if profile_name is None:
        try:
            profile_name = get_active_profile_name(env_prefix=env_prefix)
        except ProfileNotFoundError as e:
            return ConnectionResult(success=False, error=str(e))

    try:
        config = load_db_config()
    except FileNotFoundError as e:
        return ConnectionResult(success=False, error=str(e))

    if profile_name not in config.profiles:
        available = ", ".join(config.profiles.keys())
        return ConnectionResult(
            success=False,
            profile_name=profile_name,
            error=f"Profile '{profile_name}' not found. Available: {available}",
        )

    adapter = AsyncMySQLAdapter(resolve_url(config.profiles[profile_name]))
    try:
        version = await adapter.server_version()
    except Exception as e:
        logger.error("Connection to profile %r failed: %s", profile_name, e)
        return ConnectionResult(
            success=False,
            profile_name=profile_name,
            error=f"Failed to connect to database: {e}",
        )
    finally:
        await adapter.close()

    write_profile_lock(profile_name)
    return ConnectionResult(success=True, profile_name=profile_name, server_version=version)


# ============================================================================
# Database Adapter Factory
# ============================================================================


async def get_adapter(
    profile_name: str | None = None,
    env_prefix: str = "",
    database_url: str | None = None,
) -> DatabaseClient:
    """Create a database adapter.

    A new adapter is created on every call; the caller closes it.

    Args:
        profile_name: Profile name from db.toml (default: active profile).
        env_prefix: Prefix for the profile env var.
        database_url: Direct URL; skips profile resolution entirely.

    Returns:
        AsyncMySQLAdapter instance

    Raises:
        ProfileNotFoundError: If no profile is configured
        KeyError: If the profile is not in db.toml

    Example:
        >>> adapter = await get_adapter(database_url="mysql://root@localhost/shop")
    """
    if database_url is not None:
        return AsyncMySQLAdapter(database_url)

    if profile_name is None:
        profile_name, profile = get_active_profile(env_prefix=env_prefix)
    else:
        config = load_db_config()
        if profile_name not in config.profiles:
            raise KeyError(
                f"Profile '{profile_name}' not found in db.toml.\n"
                f"Available profiles: {', '.join(config.profiles.keys())}"
            )
        profile = config.profiles[profile_name]

    return AsyncMySQLAdapter(resolve_url(profile))
