from pathlib import Path

import pytest
from click.testing import CliRunner

from custom_target_kit.cli import main


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in ("PROJECT_ID", "REGION", "CUSTOM_TARGETS_DIR", "CT_USE_DEFAULT_RENDERER"):
        monkeypatch.delenv(key, raising=False)


def test_apply_without_required_env_exits_1_without_calls(fake_cloud, tmp_path: Path) -> None:
    runner = CliRunner()

    result = runner.invoke(main, ["-C", str(tmp_path), "apply"])

    assert result.exit_code == 1
    assert fake_cloud.calls == []


def test_apply_success(fake_cloud, local_source: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PROJECT_ID", "demo")
    monkeypatch.setenv("REGION", "us-central1")
    monkeypatch.setenv("CUSTOM_TARGETS_DIR", str(local_source))

    result = CliRunner().invoke(main, ["apply"])

    assert result.exit_code == 0, result.output
    assert "CustomTargetType: git" in result.output
    assert fake_cloud.calls[-1] == "deploy-apply"


def test_apply_propagates_command_exit_code(
    fake_cloud, local_source: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("PROJECT_ID", "demo")
    monkeypatch.setenv("REGION", "us-central1")
    monkeypatch.setenv("CUSTOM_TARGETS_DIR", str(local_source))
    fake_cloud.fail_on = "deploy-apply"

    result = CliRunner().invoke(main, ["apply"])

    assert result.exit_code == 2


def test_apply_storage_error_exits_1(fake_cloud, local_source: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PROJECT_ID", "demo")
    monkeypatch.setenv("REGION", "us-central1")
    monkeypatch.setenv("CUSTOM_TARGETS_DIR", str(local_source))
    fake_cloud.fail_on = "config-upload"

    result = CliRunner().invoke(main, ["apply"])

    assert result.exit_code == 1
    assert "deploy-apply" not in fake_cloud.calls


def test_plan_prints_documents(fake_cloud, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PROJECT_ID", "demo")
    monkeypatch.setenv("REGION", "us-central1")
    monkeypatch.setenv("CT_USE_DEFAULT_RENDERER", "false")

    result = CliRunner().invoke(main, ["plan"])

    assert result.exit_code == 0, result.output
    assert "renderAction: git-deployer" in result.output
    assert fake_cloud.calls == []


def test_check_exits_1_when_resources_missing(fake_cloud, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PROJECT_ID", "demo")
    monkeypatch.setenv("REGION", "us-central1")

    result = CliRunner().invoke(main, ["check"])

    assert result.exit_code == 1
    assert fake_cloud.calls == ["repo-describe", "bucket-list"]
