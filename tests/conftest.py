import io
import json
import sys
import zipfile
from pathlib import Path
from typing import Any, Callable, Generator, Optional

import pytest
import requests
from loguru import logger

from modupdater.models.package import Package
from modupdater.utils import http
from modupdater.utils.app_info import AppInfo
from modupdater.utils.locator import load_package
from modupdater.utils.sources import nexus


@pytest.fixture(autouse=True)
def isolated_environment(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Generator[None, None, None]:
    """
    Point every application folder at tmp_path and keep tests away from the real
    keyring, browser cookies and environment overrides.
    """
    app_info = AppInfo()
    storage = tmp_path / "app_storage"
    monkeypatch.setattr(app_info, "_app_storage_folder", storage)
    monkeypatch.setattr(app_info, "_user_log_folder", tmp_path / "logs")
    monkeypatch.setattr(app_info, "_settings_file", storage / "settings.json")
    monkeypatch.setattr(app_info, "_debug_file", storage / "DEBUG")

    for name in ("NEXUS_SESSION", "GITHUB_TOKEN", "MODUPDATER_MODS_DIR"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(
        "modupdater.utils.keyring_manager.keyring.get_password",
        lambda service, username: None,
    )
    monkeypatch.setattr(nexus.rookiepy, "load", lambda domains=None: [])

    yield

    nexus.reset_session_token()
    http.reset_session()
    logger.remove()
    logger.add(sys.stderr)


def make_response(
    status_code: int = 200,
    content: bytes = b"",
    json_data: Any = None,
    text: Optional[str] = None,
    reason: str = "",
) -> requests.Response:
    response = requests.Response()
    response.status_code = status_code
    response.reason = reason or ("OK" if status_code < 400 else "Error")
    response.encoding = "utf-8"
    if json_data is not None:
        content = json.dumps(json_data).encode("utf-8")
    elif text is not None:
        content = text.encode("utf-8")
    response._content = content
    return response


class FakeSession:
    """Stands in for requests.Session, answering from a (method, url) routing table."""

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], requests.Response | Exception] = {}
        self.calls: list[tuple[str, str, dict[str, Any]]] = []

    def add(
        self, method: str, url: str, response: requests.Response | Exception
    ) -> None:
        self.routes[(method.upper(), url)] = response

    def request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        self.calls.append((method.upper(), url, kwargs))
        try:
            response = self.routes[(method.upper(), url)]
        except KeyError:
            raise AssertionError(f"Unexpected request: {method} {url}")
        if isinstance(response, Exception):
            raise response
        response.url = url
        return response

    def urls(self) -> list[str]:
        return [url for _, url, _ in self.calls]


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def response_factory() -> Callable[..., requests.Response]:
    return make_response


def build_zip(entries: dict[str, Optional[bytes]]) -> bytes:
    """Build zip bytes; a None value creates a directory entry."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        for name, data in entries.items():
            if data is None:
                zf.writestr(zipfile.ZipInfo(name), b"")
            else:
                zf.writestr(name, data)
    return buffer.getvalue()


@pytest.fixture
def zip_factory() -> Callable[[dict[str, Optional[bytes]]], bytes]:
    return build_zip


@pytest.fixture
def mods_dir(tmp_path: Path) -> Path:
    path = tmp_path / "Mods"
    path.mkdir()
    return path


@pytest.fixture
def mod_factory(mods_dir: Path) -> Callable[..., Package]:
    """
    Create a mod folder with a manifest.json (and optional extra files) and load it.
    """

    def create(
        folder: str,
        manifest: Optional[dict[str, Any]] = None,
        files: Optional[dict[str, bytes]] = None,
        parent: Optional[Path] = None,
    ) -> Package:
        mod_dir = (parent or mods_dir) / folder
        mod_dir.mkdir(parents=True)
        (mod_dir / "manifest.json").write_text(
            json.dumps(manifest if manifest is not None else {"Name": folder}),
            encoding="utf-8",
        )
        for relative, data in (files or {}).items():
            path = mod_dir / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        return load_package(mod_dir)

    return create
