from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

from platformdirs import PlatformDirs


class AppInfo:
    """
    Singleton class that provides information about the application and its related directories.

    The directories are determined using the `platformdirs` package, ensuring
    platform-specific conventions are adhered to. Unlike the mods directory, none of
    these folders are created here; callers create them when they first write to them.

    Examples:
        >>> print(AppInfo().app_name)
        >>> print(AppInfo().app_settings_file)
    """

    _instance: "None | AppInfo" = None

    def __new__(cls) -> "AppInfo":
        """
        Create a new instance or return the existing singleton instance of the `AppInfo` class.
        """
        if not cls._instance:
            cls._instance = super(AppInfo, cls).__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        if hasattr(self, "_is_initialized") and self._is_initialized:
            return

        # Application metadata

        self._app_name = "ModUpdater"
        self._distribution_name = "modupdater"

        try:
            self._app_version = version(self._distribution_name)
        except PackageNotFoundError:
            self._app_version = "Unknown version"

        # Define important directories using platformdirs

        platform_dirs = PlatformDirs(appname=self._app_name, appauthor=False)
        self._app_storage_folder: Path = Path(platform_dirs.user_data_dir)
        self._user_log_folder: Path = Path(platform_dirs.user_log_dir)

        # Derive some secondary paths

        self._settings_file: Path = self._app_storage_folder / "settings.json"
        self._debug_file: Path = self._app_storage_folder / "DEBUG"

        self._is_initialized: bool = True

    @property
    def app_name(self) -> str:
        """
        Get the name of the application.

        Returns:
            str: The name of the application.
        """
        return self._app_name

    @property
    def app_version(self) -> str:
        """
        Get the application version string.

        Returns:
            str: The installed distribution version, or "Unknown version" when running from source.
        """
        return self._app_version

    @property
    def user_agent(self) -> str:
        return f"{self._app_name}/{self._app_version}"

    @property
    def app_storage_folder(self) -> Path:
        """
        Get the path to the folder where application-specific data is stored.

        Returns:
            Path: The path to the application's storage folder.
        """
        return self._app_storage_folder

    @property
    def user_log_folder(self) -> Path:
        """
        Get the path to the folder where application logs are stored.

        Returns:
            Path: The path to the user's log folder.
        """
        return self._user_log_folder

    @property
    def app_settings_file(self) -> Path:
        return self._settings_file

    @property
    def debug_file(self) -> Path:
        """
        Get the path of the marker file that enables debug logging.

        Returns:
            Path: The path to the DEBUG marker file.
        """
        return self._debug_file
