"""
gcp_project
-----------

프로젝트 번호 조회 및 기본 Compute 서비스 계정 이름을 담당하는 모듈.
"""

from __future__ import annotations

from .config import ProvisionConfig
from .logging_utils import get_logger
from .subprocess_utils import run_command


logger = get_logger(__name__)


def get_project_number(cfg: ProvisionConfig) -> str:
    cmd = [
        "gcloud",
        "-q",
        "projects",
        "describe",
        cfg.project_id,
        "--format=value(projectNumber)",
    ]
    number = run_command(cmd).stdout.strip()
    if not number:
        raise ValueError(f"프로젝트 번호를 확인할 수 없습니다: {cfg.project_id}")
    return number


def default_compute_service_account(cfg: ProvisionConfig) -> str:
    """
    기본 Compute 서비스 계정의 IAM member 문자열을 반환한다.
    (예: serviceAccount:123456789-compute@developer.gserviceaccount.com)
    """
    number = get_project_number(cfg)
    member = f"serviceAccount:{number}-compute@developer.gserviceaccount.com"
    logger.debug("기본 Compute 서비스 계정: %s", member)
    return member
