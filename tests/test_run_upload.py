from __future__ import annotations

from pathlib import Path

import pytest

from raspi_uploader import run_upload, sweep
from raspi_uploader.errors import NetworkError, StorageError
from raspi_uploader.uploader import UploadResult

CONFIG_YAML = """\
aliyun_oss:
  endpoint: oss-cn-hangzhou.aliyuncs.com
  access_key_id: id
  access_key_secret: secret
  bucket_name: pi-photos
dingtalk_bot:
  webhook: https://oapi.dingtalk.com/robot/send?access_token=abc
  secret: SECxyz
"""


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(CONFIG_YAML)
    return path


@pytest.fixture
def calls(monkeypatch: pytest.MonkeyPatch) -> list[str]:
    recorded: list[str] = []

    def fake_sweep(config):
        recorded.append("sweep")
        return []

    def fake_upload(config, path):
        recorded.append(f"upload:{Path(path).name}")
        return UploadResult(public_url="https://pi-photos.example/raspi/x.jpg", key="raspi/x.jpg")

    def fake_notify(config, url):
        recorded.append(f"notify:{url}")

    monkeypatch.setattr(run_upload, "run_sweep", fake_sweep)
    monkeypatch.setattr(run_upload, "upload_file", fake_upload)
    monkeypatch.setattr(run_upload, "send_notification", fake_notify)
    return recorded


def test_usage_on_wrong_arity(capsys: pytest.CaptureFixture[str]) -> None:
    assert run_upload.main([]) == 1
    assert run_upload.main(["a.jpg", "b.jpg"]) == 1
    assert "Usage" in capsys.readouterr().out


def test_config_failure_exits_1(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert run_upload.main(["photo.jpg"], config_path=tmp_path / "missing.yaml") == 1
    assert "Failed to load config" in capsys.readouterr().out


def test_success_sequence(config_path: Path, calls: list[str]) -> None:
    assert run_upload.main(["photo.jpg"], config_path=config_path) == 0
    assert calls == [
        "sweep",
        "upload:photo.jpg",
        "notify:https://pi-photos.example/raspi/x.jpg",
    ]


def test_sweep_failure_does_not_abort(
    config_path: Path, calls: list[str], monkeypatch: pytest.MonkeyPatch
) -> None:
    def failing_sweep(config):
        raise StorageError("Failed to list folders: denied")

    monkeypatch.setattr(run_upload, "run_sweep", failing_sweep)
    assert run_upload.main(["photo.jpg"], config_path=config_path) == 0
    assert calls[0] == "upload:photo.jpg"


def test_upload_failure_exits_1(
    config_path: Path, calls: list[str], monkeypatch: pytest.MonkeyPatch, capsys
) -> None:
    def failing_upload(config, path):
        raise StorageError("Failed to upload photo.jpg: denied")

    monkeypatch.setattr(run_upload, "upload_file", failing_upload)
    assert run_upload.main(["photo.jpg"], config_path=config_path) == 1
    assert "Failed to upload file" in capsys.readouterr().out
    assert not any(call.startswith("notify") for call in calls)


def test_notify_failure_exits_1(
    config_path: Path, calls: list[str], monkeypatch: pytest.MonkeyPatch
) -> None:
    def failing_notify(config, url):
        raise NetworkError("Webhook request failed: unreachable")

    monkeypatch.setattr(run_upload, "send_notification", failing_notify)
    assert run_upload.main(["photo.jpg"], config_path=config_path) == 1


def test_sweep_entrypoint(config_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(sweep, "run_sweep", lambda config: ["raspi/20200101/"])
    assert sweep.main(config_path) == 0

    def failing_sweep(config):
        raise StorageError("boom")

    monkeypatch.setattr(sweep, "run_sweep", failing_sweep)
    assert sweep.main(config_path) == 1
