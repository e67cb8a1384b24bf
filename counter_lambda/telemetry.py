"""
telemetry.py - 로그, 메트릭, 트레이스

-- 왜 Powertools를 사용하는가?
Lambda에서 print()로 남긴 문자열은 CloudWatch Logs에서 검색하기 어렵습니다.
Powertools Logger는 JSON 한 줄로 로그를 남기고,
Metrics는 CloudWatch Embedded Metric Format(EMF)으로 표준출력에 메트릭을 씁니다.
Tracer는 X-Ray 세그먼트를 만들며, Lambda 밖(로컬 테스트)에서는 자동으로 꺼집니다.

여기서 남기는 값은 관찰용일 뿐이며, 핸들러 동작에 되돌아가 영향을 주지 않습니다.
"""

import os
from typing import Mapping, Optional

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.metrics import MetricUnit

SERVICE_NAME = os.environ.get("POWERTOOLS_SERVICE_NAME", "counter-service")
METRICS_NAMESPACE = os.environ.get("POWERTOOLS_METRICS_NAMESPACE", "CounterFunctions")

logger = Logger(service=SERVICE_NAME)
metrics = Metrics(namespace=METRICS_NAMESPACE, service=SERVICE_NAME)
tracer = Tracer(service=SERVICE_NAME)

__all__ = [
    "MetricUnit",
    "initialization_type",
    "is_cold_start",
    "logger",
    "metrics",
    "tracer",
]


def initialization_type(environ: Optional[Mapping[str, str]] = None) -> str:
    """
    실행 환경이 어떻게 초기화되었는지 반환합니다.

    Lambda가 설정하는 값: 'on-demand', 'provisioned-concurrency', 'snap-start'
    Lambda 밖이면 'unknown'
    """
    if environ is None:
        environ = os.environ
    return environ.get("AWS_LAMBDA_INITIALIZATION_TYPE", "unknown")


def is_cold_start(environ: Optional[Mapping[str, str]] = None) -> bool:
    # SnapStart 복원은 'snap-start'로 표시되므로 콜드 스타트로 세지 않습니다.
    return initialization_type(environ) == "on-demand"
