from __future__ import annotations

from dataclasses import dataclass
from typing import List

from .config import ProvisionConfig
from .logging_utils import announce, get_logger
from .manifests import (
    render_build_config,
    render_module_config,
    render_target_type,
    write_document,
)
from .scratch import scratch_directory
from . import (
    gcp_source,
    gcp_project,
    gcp_artifact_registry,
    gcp_gcs,
    gcp_cloud_build,
    gcp_cloud_deploy,
)


logger = get_logger(__name__)

# 실행 순서 그대로. plan/check 출력에서도 사용한다.
STEPS: List[str] = [
    "source",
    "registry",
    "iam",
    "bucket",
    "build",
    "digest",
    "module-config",
    "target-type",
]

MODULE_CONFIG_FILENAME = "skaffold.yaml"
TARGET_TYPE_FILENAME = "clouddeploy.yaml"


@dataclass(frozen=True)
class ProvisionResult:
    commit_sha: str
    image_ref: str
    module_config_uri: str
    target_type: str


def provision(cfg: ProvisionConfig) -> ProvisionResult:
    """
    Custom Target Type 을 등록하기 위한 전체 단계를 순서대로 실행한다.

    각 단계는 실패 즉시 예외를 그대로 전파한다(롤백 없음).
    리소스 생성 단계는 존재 여부를 먼저 확인하므로 재실행으로 부분 적용 상태를 복구할 수 있다.
    """
    logger.info("프로비저닝 시작: project=%s region=%s", cfg.project_id, cfg.region)

    with scratch_directory() as workdir:
        logger.info("단계 실행: source")
        source_root = gcp_source.resolve_source(cfg, workdir)

        logger.info("단계 실행: registry")
        gcp_artifact_registry.ensure_repository(cfg)

        logger.info("단계 실행: iam")
        member = gcp_project.default_compute_service_account(cfg)
        gcp_artifact_registry.grant_reader_access(cfg, member)

        logger.info("단계 실행: bucket")
        gcp_gcs.ensure_bucket(cfg)

        logger.info("단계 실행: build")
        config_path = gcp_cloud_build.write_build_config(workdir)
        commit_sha = gcp_source.read_commit_sha(source_root)
        gcp_cloud_build.submit_build(
            cfg,
            config_path,
            source_root / cfg.source_subdir,
            commit_sha,
        )

        logger.info("단계 실행: digest")
        digest = gcp_artifact_registry.describe_image_digest(cfg)
        image_ref = f"{cfg.image_url}@{digest}"

        logger.info("단계 실행: module-config")
        announce(f"Uploading the custom target definition to gs://{cfg.bucket_name}", logger)
        module_path = write_document(
            workdir, MODULE_CONFIG_FILENAME, render_module_config(cfg, digest)
        )
        module_uri = gcp_gcs.upload_file(cfg, module_path, cfg.module_config_object)

        logger.info("단계 실행: target-type")
        target_path = write_document(workdir, TARGET_TYPE_FILENAME, render_target_type(cfg))
        gcp_cloud_deploy.apply_manifest(cfg, target_path)

    logger.info("프로비저닝 완료: CustomTargetType=%s", cfg.type_name)
    return ProvisionResult(
        commit_sha=commit_sha,
        image_ref=image_ref,
        module_config_uri=module_uri,
        target_type=cfg.type_name,
    )


def format_result(cfg: ProvisionConfig, result: ProvisionResult) -> str:
    lines: List[str] = []
    lines.append("# Provision summary")
    lines.append(f"- project: {cfg.project_id}")
    lines.append(f"- region: {cfg.region}")
    lines.append(f"- commit: {result.commit_sha}")
    lines.append(f"- image: {result.image_ref}")
    lines.append(f"- module config: {result.module_config_uri}")
    lines.append(f"- CustomTargetType: {result.target_type}")
    return "\n".join(lines)


def plan_all(cfg: ProvisionConfig) -> str:
    """
    현재 설정으로 수행될 단계와 생성될 문서를 요약 텍스트로 리턴한다.
    실제 GCP 호출은 하지 않는다.
    """
    lines: List[str] = []
    lines.append("# Provision plan")
    lines.append(f"- project: {cfg.project_id}")
    lines.append(f"- region: {cfg.region}")
    lines.append("")

    lines.append("## Config summary")
    lines.append(f"- source: {gcp_source.local_source_dir(cfg)} (없으면 {cfg.samples_repo_url} clone)")
    lines.append(f"- artifact registry: {cfg.repository_url}")
    lines.append(f"- image: {cfg.image_url}")
    lines.append(f"- bucket: gs://{cfg.bucket_name}")
    lines.append(f"- module config: {cfg.module_config_uri}")
    lines.append(f"- custom target type: {cfg.type_name}")
    lines.append(f"- custom action: {cfg.custom_action_name}")
    lines.append(f"- use_default_renderer: {cfg.use_default_renderer}")
    lines.append("")

    lines.append("## Steps")
    for idx, name in enumerate(STEPS, start=1):
        lines.append(f"{idx}. {name}")
    lines.append("")

    lines.append(f"## {gcp_cloud_build.BUILD_CONFIG_FILENAME}")
    lines.append(render_build_config().rstrip())
    lines.append("")
    lines.append(f"## {TARGET_TYPE_FILENAME}")
    lines.append(render_target_type(cfg).rstrip())

    return "\n".join(lines)


def check_all(cfg: ProvisionConfig) -> tuple[str, bool]:
    """
    실제 리소스 생성 없이 레지스트리/버킷 상태를 점검한다.

    Returns:
        summary: 사람이 읽기 좋은 텍스트 요약
        has_issues: 새로 생성될 리소스가 있거나 상태 확인에 실패했는지 여부
    """
    lines: List[str] = []
    issues: List[str] = []

    lines.append("# Provision pre-check")
    lines.append(f"- project: {cfg.project_id}")
    lines.append(f"- region: {cfg.region}")
    lines.append("")

    lines.append("## Source")
    source_dir = gcp_source.local_source_dir(cfg)
    if source_dir.is_dir():
        lines.append(f"- 로컬 소스 사용: {source_dir}")
    else:
        lines.append(f"- 로컬 소스 없음, clone 예정: {cfg.samples_repo_url}")
    lines.append("")

    lines.append("## Artifact Registry")
    try:
        ar_status = gcp_artifact_registry.check_repository(cfg)
        if "리포지토리 없음" in ar_status:
            issues.append(ar_status)
    except Exception as e:  # noqa: BLE001
        ar_status = f"Artifact Registry: 체크 중 예외 발생: {e}"
        issues.append(ar_status)
    lines.append(f"- {ar_status}")
    lines.append("")

    lines.append("## GCS")
    try:
        gcs_status = gcp_gcs.check_bucket(cfg)
        if "버킷 없음" in gcs_status:
            issues.append(gcs_status)
    except Exception as e:  # noqa: BLE001
        gcs_status = f"GCS: 체크 중 예외 발생: {e}"
        issues.append(gcs_status)
    lines.append(f"- {gcs_status}")
    lines.append("")

    lines.append("## Summary")
    if issues:
        lines.append("- 상태: 확인이 필요한 항목이 있습니다. (apply 시 리소스가 새로 생성될 수 있습니다)")
    else:
        lines.append("- 상태: 주요 이슈 없음")

    return "\n".join(lines), bool(issues)
