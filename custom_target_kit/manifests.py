"""
manifests
---------

프로비저닝 중 생성하는 YAML 문서들.

- cloudbuild.yaml  : Custom Target 이미지 빌드 설정
- skaffold.yaml    : custom action 과 이미지(digest 고정)를 선언하는 Skaffold 모듈
- clouddeploy.yaml : Cloud Deploy CustomTargetType 리소스
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from .config import ProvisionConfig


BUILDER_IMAGE = "gcr.io/cloud-builders/docker"
SKAFFOLD_API_VERSION = "skaffold/v4beta7"
CLOUD_DEPLOY_API_VERSION = "deploy.cloud.google.com/v1"

# Cloud Build 가 치환하는 값이므로 그대로 남겨둔다.
_BUILD_IMAGE_REF = "$LOCATION-docker.pkg.dev/$PROJECT_ID/$_AR_REPO_NAME/$_IMAGE_NAME"


def _dump(doc: dict[str, Any]) -> str:
    return yaml.safe_dump(doc, sort_keys=False, default_flow_style=False)


def render_build_config() -> str:
    doc = {
        "steps": [
            {
                "name": BUILDER_IMAGE,
                "args": [
                    "build",
                    "--build-arg", "COMMIT_SHA=$COMMIT_SHA",
                    "-t", _BUILD_IMAGE_REF,
                    "-f", "Dockerfile",
                    ".",
                ],
            }
        ],
        "images": [_BUILD_IMAGE_REF],
        "options": {
            "logging": "CLOUD_LOGGING_ONLY",
            "requestedVerifyOption": "VERIFIED",
        },
    }
    return _dump(doc)


def build_substitutions(cfg: ProvisionConfig, commit_sha: str) -> str:
    return ",".join(
        [
            f"_AR_REPO_NAME={cfg.artifact_registry_repo}",
            f"_IMAGE_NAME={cfg.image_name}",
            f"COMMIT_SHA={commit_sha}",
        ]
    )


def render_module_config(cfg: ProvisionConfig, digest: str) -> str:
    """
    이미지는 가변 태그(latest)가 아닌 digest 로만 참조한다.
    """
    if not digest.startswith("sha256:"):
        raise ValueError(f"digest 형식이 아닙니다: {digest!r}")

    image = f"{cfg.image_url}@{digest}"
    doc = {
        "apiVersion": SKAFFOLD_API_VERSION,
        "kind": "Config",
        "metadata": {"name": cfg.skaffold_config_name},
        "customActions": [
            {
                "name": cfg.custom_action_name,
                "containers": [
                    {"name": cfg.custom_action_name, "image": image},
                ],
            }
        ],
    }
    return _dump(doc)


def render_target_type(cfg: ProvisionConfig) -> str:
    actions: dict[str, Any] = {}
    if not cfg.use_default_renderer:
        actions["renderAction"] = cfg.custom_action_name
    actions["deployAction"] = cfg.custom_action_name
    actions["includeSkaffoldModules"] = [
        {
            "configs": [cfg.skaffold_config_name],
            "googleCloudStorage": {
                "source": cfg.module_source_glob,
                "path": "skaffold.yaml",
            },
        }
    ]

    doc = {
        "apiVersion": CLOUD_DEPLOY_API_VERSION,
        "kind": "CustomTargetType",
        "metadata": {"name": cfg.type_name},
        "customActions": actions,
    }
    return _dump(doc)


def write_document(directory: Path, filename: str, content: str) -> Path:
    path = directory / filename
    path.write_text(content, encoding="utf-8")
    return path
