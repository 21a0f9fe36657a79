"""
gcp_cloud_deploy
----------------

Cloud Deploy 에 CustomTargetType 리소스를 생성/갱신(apply)하는 모듈.
"""

from __future__ import annotations

from pathlib import Path

from .config import ProvisionConfig
from .logging_utils import announce, get_logger
from .subprocess_utils import run_command


logger = get_logger(__name__)


def apply_manifest(cfg: ProvisionConfig, manifest_path: Path) -> None:
    announce("Create the CustomTargetType resource in Cloud Deploy", logger)
    cmd = [
        "gcloud",
        "-q",
        "deploy",
        "apply",
        f"--project={cfg.project_id}",
        f"--region={cfg.region}",
        f"--file={manifest_path}",
    ]
    run_command(cmd)
    logger.info("CustomTargetType 적용 완료: %s", cfg.type_name)
