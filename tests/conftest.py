"""
pytest 설정:

로컬 작업 환경에 설치된 다른 버전의 custom_target_kit 패키지가 존재할 때,
`pytest` 실행 시 site-packages 쪽이 먼저 import 되어 테스트가 깨질 수 있다.

테스트는 항상 현재 레포의 소스를 대상으로 해야 하므로, repo root 를 sys.path 최상단에 고정한다.

또한 gcloud/git/GCS 를 실제로 호출하지 않도록 각 모듈의 run_command 와
storage.Client 를 대체하는 FakeCloud 픽스처를 제공한다.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Sequence

import pytest


def pytest_configure() -> None:
    repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
    if repo_root not in sys.path:
        sys.path.insert(0, repo_root)


FAKE_COMMIT = "0123456789abcdef0123456789abcdef01234567"
FAKE_DIGEST = "sha256:" + "d" * 64
FAKE_PROJECT_NUMBER = "123456789012"


def _flag(cmd: Sequence[str], name: str) -> str:
    prefix = f"--{name}="
    for part in cmd:
        if part.startswith(prefix):
            return part[len(prefix):]
    raise AssertionError(f"{name} 플래그가 없습니다: {cmd}")


class FakeCloud:
    """
    gcloud/git 명령과 GCS 클라이언트를 흉내내는 인메모리 클라우드.

    calls 에는 사람이 읽기 쉬운 라벨(repo-describe 등)이 순서대로 쌓인다.
    """

    def __init__(self) -> None:
        self.calls: list[str] = []
        self.repos: set[str] = set()
        self.buckets: set[str] = set()
        self.objects: dict[str, str] = {}
        self.iam_bindings: list[tuple[str, str]] = []
        self.submitted_commits: list[str] = []
        self.submitted_configs: list[str] = []
        self.applied_manifests: list[str] = []
        self.workdirs: list[Path] = []
        self.clone_dests: list[Path] = []
        self.fail_on: str | None = None
        self.iam_error_output: str | None = None
        # 라벨별 마지막 호출의 대상(project/region/소스 디렉토리 등)
        self.targets: dict[str, dict[str, str]] = {}

    # --- subprocess 대체 ---

    def run(self, cmd: Sequence[str], **kwargs):  # noqa: ANN003, ANN201
        from custom_target_kit.subprocess_utils import CommandError, RunResult

        args = [c for c in cmd[1:] if c != "-q"]
        label = self._label(cmd[0], args)
        self.calls.append(label)

        if label == self.fail_on:
            raise CommandError(f"{label} failed", cmd=cmd, returncode=2, output="boom")

        stdout = ""
        if label == "clone":
            self.clone_dests.append(Path(args[-1]))
        elif label == "rev-parse":
            stdout = FAKE_COMMIT + "\n"
        elif label == "repo-describe":
            if args[3] not in self.repos:
                raise CommandError("not found", cmd=cmd, returncode=1, output="NOT_FOUND")
        elif label == "repo-create":
            self.repos.add(args[3])
        elif label == "project-describe":
            stdout = FAKE_PROJECT_NUMBER + "\n"
        elif label == "iam-bind":
            if self.iam_error_output is not None:
                raise CommandError("iam failed", cmd=cmd, returncode=1, output=self.iam_error_output)
            self.iam_bindings.append((_flag(cmd, "member"), _flag(cmd, "role")))
        elif label == "build-submit":
            subs = dict(p.split("=", 1) for p in _flag(cmd, "substitutions").split(","))
            self.submitted_commits.append(subs["COMMIT_SHA"])
            config_path = Path(_flag(cmd, "config"))
            self.submitted_configs.append(config_path.read_text(encoding="utf-8"))
            self.workdirs.append(config_path.parent)
            self.targets[label] = {
                "project": _flag(cmd, "project"),
                "region": _flag(cmd, "region"),
                "source": args[-1],
            }
        elif label == "image-describe":
            self.targets[label] = {"image": args[4], "project": _flag(cmd, "project")}
            stdout = FAKE_DIGEST + "\n"
        elif label == "deploy-apply":
            self.targets[label] = {"project": _flag(cmd, "project"), "region": _flag(cmd, "region")}
            self.applied_manifests.append(Path(_flag(cmd, "file")).read_text(encoding="utf-8"))

        return RunResult(returncode=0, stdout=stdout, stderr="")

    @staticmethod
    def _label(program: str, args: list[str]) -> str:
        if program == "git":
            return "clone" if args[0] == "clone" else "rev-parse"
        joined = " ".join(args[:4])
        if joined.startswith("artifacts repositories describe"):
            return "repo-describe"
        if joined.startswith("artifacts repositories create"):
            return "repo-create"
        if joined.startswith("artifacts repositories add-iam-policy-binding"):
            return "iam-bind"
        if joined.startswith("projects describe"):
            return "project-describe"
        if joined.startswith("beta builds submit"):
            return "build-submit"
        if joined.startswith("artifacts docker images describe"):
            return "image-describe"
        if joined.startswith("deploy apply"):
            return "deploy-apply"
        raise AssertionError(f"예상하지 못한 명령: {program} {args}")

    # --- google.cloud.storage 대체 ---

    def storage_client(self, project: str | None = None) -> "_FakeStorageClient":
        return _FakeStorageClient(self)


class _FakeBlob:
    def __init__(self, cloud: FakeCloud, bucket: str, name: str) -> None:
        self._cloud = cloud
        self._bucket = bucket
        self._name = name

    def upload_from_filename(self, filename: str, content_type: str | None = None) -> None:
        uri = f"gs://{self._bucket}/{self._name}"
        self._cloud.calls.append("config-upload")
        if self._cloud.fail_on == "config-upload":
            from google.api_core.exceptions import Forbidden

            raise Forbidden("upload denied")
        self._cloud.objects[uri] = Path(filename).read_text(encoding="utf-8")


class _FakeBucket:
    def __init__(self, cloud: FakeCloud, name: str) -> None:
        self._cloud = cloud
        self.name = name

    def exists(self) -> bool:
        self._cloud.calls.append("bucket-list")
        return self.name in self._cloud.buckets

    def blob(self, name: str) -> _FakeBlob:
        return _FakeBlob(self._cloud, self.name, name)


class _FakeStorageClient:
    def __init__(self, cloud: FakeCloud) -> None:
        self._cloud = cloud

    def bucket(self, name: str) -> _FakeBucket:
        return _FakeBucket(self._cloud, name)

    def create_bucket(self, bucket: _FakeBucket, location: str | None = None) -> _FakeBucket:
        self._cloud.calls.append("bucket-create")
        self._cloud.buckets.add(bucket.name)
        return bucket


@pytest.fixture
def fake_cloud(monkeypatch: pytest.MonkeyPatch) -> FakeCloud:
    from custom_target_kit import (
        gcp_artifact_registry,
        gcp_cloud_build,
        gcp_cloud_deploy,
        gcp_gcs,
        gcp_project,
        gcp_source,
    )

    cloud = FakeCloud()
    for module in (gcp_artifact_registry, gcp_cloud_build, gcp_cloud_deploy, gcp_project, gcp_source):
        monkeypatch.setattr(module, "run_command", cloud.run)
    monkeypatch.setattr(gcp_gcs.storage, "Client", cloud.storage_client)
    return cloud


@pytest.fixture
def local_source(tmp_path: Path) -> Path:
    """custom-targets/git-ops/git-deployer 가 존재하는 로컬 checkout."""
    root = tmp_path / "custom-targets"
    (root / "git-ops" / "git-deployer").mkdir(parents=True)
    return root
