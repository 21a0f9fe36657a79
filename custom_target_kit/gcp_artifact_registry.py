"""
gcp_artifact_registry
---------------------

Artifact Registry 리포지토리 존재 여부 확인/생성, 리더 권한 부여,
빌드된 이미지의 digest 조회를 담당하는 모듈.
"""

from __future__ import annotations

import re

from .config import ProvisionConfig
from .logging_utils import announce, get_logger
from .subprocess_utils import EXIT_COMMAND_NOT_FOUND, CommandError, run_command


logger = get_logger(__name__)

READER_ROLE = "roles/artifactregistry.reader"

# 같은 바인딩을 동시에/반복해서 추가할 때 gcloud 가 내는 오류. 실제 권한에는 영향이 없다.
_TOLERATED_IAM_ERRORS = re.compile(
    r"concurrent policy changes|ABORTED|already exists",
    re.IGNORECASE,
)


def _repo_args(cfg: ProvisionConfig) -> list[str]:
    return [
        cfg.artifact_registry_repo,
        f"--location={cfg.region}",
        f"--project={cfg.project_id}",
    ]


def repository_exists(cfg: ProvisionConfig) -> bool:
    describe_cmd = ["gcloud", "-q", "artifacts", "repositories", "describe", *_repo_args(cfg)]
    try:
        run_command(describe_cmd)
    except CommandError as e:
        if e.returncode == EXIT_COMMAND_NOT_FOUND:
            raise
        logger.debug("리포지토리 조회 실패: %s", e)
        return False
    return True


def ensure_repository(cfg: ProvisionConfig) -> bool:
    """
    Artifact Registry 리포가 존재하는지 확인하고,
    없으면 생성한다.

    Returns:
        새로 생성했으면 True
    """
    logger.info("Artifact Registry 리포 확인: %s", cfg.repository_url)

    if repository_exists(cfg):
        logger.info("기존 Artifact Registry 리포를 사용합니다: %s", cfg.repository_url)
        return False

    announce(f"Creating Artifact Registry repository: {cfg.repository_url}", logger)
    create_cmd = [
        "gcloud",
        "-q",
        "artifacts",
        "repositories",
        "create",
        *_repo_args(cfg),
        "--repository-format=docker",
    ]
    run_command(create_cmd)
    logger.info("Artifact Registry 리포를 생성했습니다: %s", cfg.repository_url)
    return True


def grant_reader_access(cfg: ProvisionConfig, member: str) -> None:
    """
    리포지토리에 대한 reader 역할을 member 에게 부여한다.

    IAM 바인딩 추가는 그 자체로 멱등이므로 사전 존재 확인을 하지 않는다.
    중복/동시 수정으로 인한 실패는 경고만 남기고 넘어간다.
    """
    announce(f"Granting the default compute service account access to {cfg.repository_url}", logger)
    cmd = [
        "gcloud",
        "-q",
        "artifacts",
        "repositories",
        "add-iam-policy-binding",
        *_repo_args(cfg),
        f"--member={member}",
        f"--role={READER_ROLE}",
    ]
    try:
        run_command(cmd)
    except CommandError as e:
        if not _TOLERATED_IAM_ERRORS.search(e.output):
            raise
        logger.warning("IAM 바인딩이 이미 처리 중이거나 존재합니다. 계속 진행합니다: %s", member)


def describe_image_digest(cfg: ProvisionConfig, tag: str = "latest") -> str:
    """
    태그가 가리키는 이미지의 digest(sha256:...)를 조회한다.
    """
    image_ref = f"{cfg.image_url}:{tag}"
    cmd = [
        "gcloud",
        "-q",
        "artifacts",
        "docker",
        "images",
        "describe",
        image_ref,
        f"--project={cfg.project_id}",
        "--format=get(image_summary.digest)",
    ]
    digest = run_command(cmd).stdout.strip()
    if not digest.startswith("sha256:"):
        raise ValueError(f"이미지 digest 를 확인할 수 없습니다: {image_ref} -> {digest!r}")
    logger.info("이미지 digest: %s@%s", cfg.image_url, digest)
    return digest


def check_repository(cfg: ProvisionConfig) -> str:
    """
    Artifact Registry 리포지토리 존재 여부를 확인만 하고, 생성하지 않는다.
    """
    if repository_exists(cfg):
        return f"Artifact Registry: 리포지토리 존재함 ({cfg.repository_url})"
    return f"Artifact Registry: 리포지토리 없음 (생성이 필요함) ({cfg.repository_url})"
