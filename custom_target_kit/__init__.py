"""
custom_target_kit
-----------------

Cloud Deploy Custom Target Type(git) 를 프로젝트/리전에 등록하는 프로비저닝 CLI 패키지.
Artifact Registry, GCS 버킷, Cloud Build 이미지 빌드, Cloud Deploy apply 를
순서대로 수행하며, 각 단계는 재실행해도 안전하도록 존재 여부를 먼저 확인한다.
"""

__all__ = [
    "config",
    "orchestrator",
]
