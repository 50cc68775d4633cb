from pathlib import Path
from typing import Callable

import pytest
import requests
from click.testing import CliRunner

from conftest import FakeSession, build_zip
from modupdater.cli.context import default_mods_dir
from modupdater.cli.main import cli
from modupdater.cli.update import format_outcome
from modupdater.models.outcome import Failed, Updated, UpToDate
from modupdater.models.package import Package
from modupdater.models.settings import Settings
from modupdater.utils.app_info import AppInfo

API_URL = Settings().compatibility_api_url


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def patched_session(
    monkeypatch: pytest.MonkeyPatch, fake_session: FakeSession
) -> FakeSession:
    monkeypatch.setattr("modupdater.cli.update.get_session", lambda: fake_session)
    return fake_session


def test_list(
    runner: CliRunner, mods_dir: Path, mod_factory: Callable[..., Package]
) -> None:
    mod_factory(
        "Widget",
        {
            "Name": "Widget",
            "Author": "Acme",
            "Version": "1.2.0",
            "Description": "Adds widgets.",
            "UpdateKeys": ["Nexus:2400", "GitHub:acme/widget"],
        },
    )
    mod_factory("Nameless", {}, parent=mods_dir / "[CP] Packs")

    result = runner.invoke(cli, ["-d", str(mods_dir), "list"])

    assert result.exit_code == 0, result.output
    nameless = Path("[CP] Packs") / "Nameless"
    assert result.stdout == (
        f"Widget ({Path('Widget')})\n"
        "Adds widgets.\n"
        "Author: Acme\n"
        "Version: 1.2.0\n"
        "Source: GitHub\n"
        "\n"
        f"{nameless}\n"
        "\n"
        "2 mods found\n"
    )


def test_list_with_mods_folder_from_settings(
    runner: CliRunner, mods_dir: Path, mod_factory: Callable[..., Package]
) -> None:
    mod_factory("Widget")
    Settings(mods_folder=str(mods_dir)).save()

    result = runner.invoke(cli, ["list"])

    assert result.exit_code == 0, result.output
    assert result.stdout.endswith("1 mods found\n")


def test_mods_dir_from_environment(
    monkeypatch: pytest.MonkeyPatch,
    runner: CliRunner,
    mods_dir: Path,
) -> None:
    monkeypatch.setenv("MODUPDATER_MODS_DIR", str(mods_dir))

    result = runner.invoke(cli, ["list"])

    assert result.exit_code == 0, result.output
    assert result.stdout == "0 mods found\n"


def test_invalid_mods_dir(runner: CliRunner, tmp_path: Path) -> None:
    result = runner.invoke(cli, ["-d", str(tmp_path / "missing"), "list"])

    assert result.exit_code == 1
    assert "Error: Invalid mods directory" in result.stderr


@pytest.mark.parametrize("command", ["list", "update"])
def test_subcommand_help_with_missing_mods_dir(
    runner: CliRunner, tmp_path: Path, command: str
) -> None:
    result = runner.invoke(cli, ["-d", str(tmp_path / "missing"), command, "--help"])

    assert result.exit_code == 0, result.output
    assert "Usage:" in result.stdout
    assert not AppInfo().app_settings_file.exists()
    assert not AppInfo().user_log_folder.exists()


def test_corrupt_settings(runner: CliRunner, mods_dir: Path) -> None:
    settings_file = AppInfo().app_settings_file
    settings_file.parent.mkdir(parents=True)
    settings_file.write_text("{not json")

    result = runner.invoke(cli, ["-d", str(mods_dir), "list"])

    assert result.exit_code == 1
    assert "Invalid settings file" in result.stderr


def test_default_settings_are_written(runner: CliRunner, mods_dir: Path) -> None:
    runner.invoke(cli, ["-d", str(mods_dir), "list"])

    assert Settings.load(AppInfo().app_settings_file) == Settings()


def test_broken_manifest_aborts(runner: CliRunner, mods_dir: Path) -> None:
    (mods_dir / "Broken").mkdir()
    (mods_dir / "Broken" / "manifest.json").write_text('{"Name": ')

    result = runner.invoke(cli, ["-d", str(mods_dir), "list"])

    assert result.exit_code == 1
    assert "Error:" in result.stderr
    assert "Broken" in result.stderr


def test_default_mods_dir() -> None:
    steam_mods = Path("steamapps/common/Stardew Valley/Mods")
    assert default_mods_dir("Windows") == Path(r"C:\Program Files (x86)\Steam") / steam_mods
    assert default_mods_dir("Linux") == Path.home() / ".steam/steam" / steam_mods
    assert default_mods_dir("Plan9") is None


def test_format_outcome(mods_dir: Path, mod_factory: Callable[..., Package]) -> None:
    widget = mod_factory("Widget", {"Name": "Widget", "Version": "1.2.0"})
    unversioned = mod_factory("Gadget", {})

    assert format_outcome(widget, Updated("1.3.0"), mods_dir) == "Widget: 1.2.0 -> 1.3.0"
    assert format_outcome(unversioned, Updated("latest"), mods_dir) == "Gadget: latest"
    assert format_outcome(widget, UpToDate(), mods_dir) == "Widget: Already up to date"
    assert format_outcome(widget, Failed("boom"), mods_dir) == "Widget: boom"


def test_update(
    runner: CliRunner,
    mods_dir: Path,
    mod_factory: Callable[..., Package],
    patched_session: FakeSession,
    response_factory: Callable[..., requests.Response],
) -> None:
    mod_factory(
        "Widget",
        {"Name": "Widget", "Version": "1.2.0", "UpdateKeys": ["GitHub:acme/widget"]},
    )
    mod_factory("Local", {"Name": "Local", "Version": "0.1.0"})
    patched_session.add(
        "POST", API_URL, response_factory(json_data=[{"suggestedUpdate": {}}])
    )
    patched_session.add(
        "GET",
        "https://api.github.com/repos/acme/widget/releases/latest",
        response_factory(
            json_data={
                "tag_name": "v1.3.0",
                "assets": [
                    {
                        "name": "Widget.zip",
                        "browser_download_url": "https://dl.example.test/Widget.zip",
                    }
                ],
            }
        ),
    )
    patched_session.add(
        "GET",
        "https://dl.example.test/Widget.zip",
        response_factory(content=build_zip({"Widget/manifest.json": b"{}"})),
    )

    result = runner.invoke(cli, ["-d", str(mods_dir), "update"])

    assert result.exit_code == 0, result.output
    assert result.stdout == "Widget: 1.2.0 -> 1.3.0\n"
    assert "Local: Unknown or unsupported source" in result.stderr
    assert result.stderr.endswith("1 updated, 1 failed, 0 already up to date\n")
    assert (mods_dir / ".old" / "Widget - 1.2.0").is_dir()


def test_update_force_summary(
    runner: CliRunner,
    mods_dir: Path,
    mod_factory: Callable[..., Package],
    patched_session: FakeSession,
    response_factory: Callable[..., requests.Response],
) -> None:
    mod_factory(
        "Widget",
        {"Name": "Widget", "Version": "1.2.0", "UpdateKeys": ["GitHub:acme/widget"]},
    )
    patched_session.add(
        "GET",
        "https://api.github.com/repos/acme/widget/releases/latest",
        response_factory(status_code=403, reason="rate limit exceeded"),
    )

    result = runner.invoke(cli, ["-d", str(mods_dir), "update", "--force"])

    assert result.exit_code == 0, result.output
    assert result.stdout == ""
    assert "Widget: HTTP 403 rate limit exceeded" in result.stderr
    assert result.stderr.endswith("0 updated, 1 failed\n")
    assert patched_session.urls() == [
        "https://api.github.com/repos/acme/widget/releases/latest"
    ]


def test_update_aborts_on_unexpected_error(
    monkeypatch: pytest.MonkeyPatch,
    runner: CliRunner,
    mods_dir: Path,
    mod_factory: Callable[..., Package],
    patched_session: FakeSession,
) -> None:
    mod_factory("Widget", {"UpdateKeys": ["GitHub:acme/widget"]})

    def explode(*args: object, **kwargs: object) -> bool:
        raise ZeroDivisionError("division by zero")

    monkeypatch.setattr(
        "modupdater.cli.update.UpdateChecker.has_update_available", explode
    )

    result = runner.invoke(cli, ["-d", str(mods_dir), "update"])

    assert result.exit_code == 1
    assert "Error: ZeroDivisionError: division by zero" in result.stderr
