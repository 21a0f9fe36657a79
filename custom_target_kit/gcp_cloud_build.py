"""
gcp_cloud_build
---------------

Cloud Build 로 Custom Target 이미지를 빌드하는 모듈.
"""

from __future__ import annotations

from pathlib import Path

from .config import ProvisionConfig
from .logging_utils import announce, get_logger
from .manifests import build_substitutions, render_build_config, write_document
from .subprocess_utils import run_command


logger = get_logger(__name__)

BUILD_CONFIG_FILENAME = "cloudbuild.yaml"


def write_build_config(directory: Path) -> Path:
    return write_document(directory, BUILD_CONFIG_FILENAME, render_build_config())


def submit_build(cfg: ProvisionConfig, config_path: Path, source_dir: Path, commit_sha: str) -> None:
    """
    빌드를 제출하고 완료될 때까지 로그를 스트리밍한다.

    non-beta 명령은 빌드 로그를 스트리밍하지 않으므로 `beta builds submit` 을 사용한다.
    빌드 시간(약 10분)은 서비스 기본값에 맡기고 별도의 timeout 을 두지 않는다.
    """
    announce("Building the Custom Target image in Cloud Build.", logger)
    announce("This will take approximately 10 minutes", logger)
    cmd = [
        "gcloud",
        "-q",
        "beta",
        "builds",
        "submit",
        f"--project={cfg.project_id}",
        f"--region={cfg.region}",
        f"--substitutions={build_substitutions(cfg, commit_sha)}",
        f"--config={config_path}",
        str(source_dir),
    ]
    run_command(cmd, stream_output=True, timeout=None)
    logger.info("이미지 빌드 완료: %s (commit=%s)", cfg.image_url, commit_sha)
