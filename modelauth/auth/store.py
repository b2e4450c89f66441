"""On-disk store of credential profiles."""

from __future__ import annotations

import json
import os
import shutil
from pathlib import Path
from typing import Mapping

from filelock import FileLock
from loguru import logger
from pydantic import ValidationError as PydanticValidationError

from modelauth.auth.errors import ProfileNotFoundError
from modelauth.auth.profiles import CredentialProfile, parse_profile_reference

STORE_VERSION = 1


def get_profiles_path() -> Path:
    """Get the default profile store path."""
    return Path.home() / ".modelauth" / "auth-profiles.json"


class ProfileStore:
    """
    JSON file holding credential profiles keyed by profile id.

    Secrets live only here. Config files reference them as ``profile:<id>``
    and :meth:`resolve_reference` turns a reference back into the secret at
    request time.
    """

    def __init__(self, path: Path | None = None):
        self.path = Path(path) if path else get_profiles_path()
        self._profiles: dict[str, CredentialProfile] = {}
        self._unreadable = False

    def load(self) -> ProfileStore:
        """
        Load profiles from disk. A missing file yields an empty store.

        An unreadable file also yields an empty store; the next :meth:`save`
        keeps it aside as ``<name>.corrupt`` instead of overwriting it.
        """
        self._profiles = {}
        self._unreadable = False
        if not self.path.exists():
            return self

        try:
            with open(self.path, encoding="utf-8-sig") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to read profile store {self.path}: {e}")
            self._unreadable = True
            return self

        if not isinstance(data, dict):
            logger.error(f"Failed to read profile store {self.path}: expected an object, got {type(data).__name__}")
            self._unreadable = True
            return self

        for profile_id, raw in (data.get("profiles") or {}).items():
            try:
                self._profiles[profile_id] = CredentialProfile.model_validate(raw)
            except PydanticValidationError as e:
                logger.warning(f"Skipping invalid profile {profile_id}: {e.error_count()} error(s)")
        return self

    @property
    def corrupt_path(self) -> Path:
        return self.path.with_suffix(".json.corrupt")

    @property
    def backup_path(self) -> Path:
        return self.path.with_suffix(".json.bak")

    def save(self) -> None:
        """Write profiles with file locking and an atomic replace.

        The previous file is copied to ``<name>.bak`` first. A file that
        failed to load is copied to ``<name>.corrupt`` instead.
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = {
            "version": STORE_VERSION,
            "profiles": {pid: p.model_dump(mode="json") for pid, p in self._profiles.items()},
        }

        with FileLock(str(self.path) + ".lock", timeout=10):
            temp_path = self.path.with_suffix(".tmp")
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            if os.name != "nt":
                os.chmod(temp_path, 0o600)

            if self.path.exists():
                if self._unreadable:
                    shutil.copy2(self.path, self.corrupt_path)
                    logger.warning(f"Kept unreadable profile store as {self.corrupt_path}")
                else:
                    shutil.copy2(self.path, self.backup_path)
            os.replace(temp_path, self.path)
            self._unreadable = False

    def get(self, profile_id: str) -> CredentialProfile | None:
        return self._profiles.get(profile_id)

    def list(self) -> list[CredentialProfile]:
        return list(self._profiles.values())

    def upsert(self, profile: CredentialProfile) -> bool:
        """Insert or overwrite a profile. Returns True if it replaced one."""
        replaced = profile.profile_id in self._profiles
        self._profiles[profile.profile_id] = profile
        return replaced

    def remove(self, profile_id: str) -> bool:
        """Remove a profile. Returns True if it was found."""
        if profile_id in self._profiles:
            del self._profiles[profile_id]
            return True
        return False

    def resolve_reference(self, ref: str, env: Mapping[str, str] | None = None) -> str:
        """
        Resolve a symbolic secret reference.

        ``profile:<id>`` resolves to the profile's key or access token; any
        other value is treated as an environment variable name.

        Raises:
            ProfileNotFoundError: If the profile or variable does not exist.
        """
        profile_id = parse_profile_reference(ref)
        if profile_id is not None:
            profile = self.get(profile_id)
            if profile is None:
                raise ProfileNotFoundError(f"No credential profile '{profile_id}'")
            return profile.secret

        env = os.environ if env is None else env
        value = env.get(ref)
        if not value:
            raise ProfileNotFoundError(f"Environment variable {ref} is not set")
        return value
