from pathlib import Path
from typing import Optional

import msgspec
from loguru import logger

from modupdater.utils.app_info import AppInfo
from modupdater.utils.exception import SettingsError


class Settings(msgspec.Struct, kw_only=True):
    """
    User configuration, persisted as settings.json in the application storage folder.

    Attributes:
        mods_folder: Mods directory used when none is given on the command line.
        compatibility_api_url: SMAPI web API endpoint used as the cheap update gate.
        compatibility_api_version: apiVersion sent with compatibility requests.
        github_api_url: Base URL of the GitHub REST API.
        nexus_url: Base URL of Nexus Mods.
        nexus_game_domain: Game segment of Nexus mod page URLs.
        nexus_game_id: Numeric game id used when generating Nexus download URLs.
        max_workers: Upper bound on concurrent update tasks, 0 for one per mod.
        request_timeout: HTTP timeout in seconds, None to use the requests default.
    """

    mods_folder: str = ""
    compatibility_api_url: str = "https://smapi.io/api/v3.0/mods"
    compatibility_api_version: str = "4.0.7"
    github_api_url: str = "https://api.github.com"
    nexus_url: str = "https://www.nexusmods.com"
    nexus_game_domain: str = "stardewvalley"
    nexus_game_id: int = 1303
    max_workers: int = 0
    request_timeout: Optional[float] = None

    @classmethod
    def load(cls, settings_file: Optional[Path] = None) -> "Settings":
        """
        Load settings from disk, writing the defaults when the file does not exist yet.

        Raises:
            SettingsError: If the file exists but cannot be decoded.
        """
        settings_file = settings_file or AppInfo().app_settings_file
        try:
            data = settings_file.read_bytes()
        except FileNotFoundError:
            logger.info(f"No settings found at {settings_file}, writing defaults")
            settings = cls()
            try:
                settings.save(settings_file)
            except OSError as e:
                logger.warning(f"Could not write default settings to {settings_file}: {e}")
            return settings

        try:
            settings = msgspec.json.decode(data, type=cls)
        except msgspec.DecodeError as e:
            raise SettingsError(f"Invalid settings file {settings_file}: {e}") from e

        if settings.max_workers < 0:
            raise SettingsError(
                f"Invalid settings file {settings_file}: max_workers must be >= 0"
            )
        logger.debug(f"Loaded settings from {settings_file}")
        return settings

    def save(self, settings_file: Optional[Path] = None) -> None:
        settings_file = settings_file or AppInfo().app_settings_file
        settings_file.parent.mkdir(parents=True, exist_ok=True)
        settings_file.write_bytes(msgspec.json.format(msgspec.json.encode(self), indent=4))
