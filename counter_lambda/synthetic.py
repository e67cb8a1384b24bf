"""
synthetic.py - 인위적인 지연 작업

비교용 "비성능(non-performant)" 변형은 일부러 느리게 동작해야 합니다.
  1. CPU를 소모하는 계산 (원래는 동적 코드 생성과 리플렉션)
  2. 카운터와 상관없는 AWS 서비스(S3, SQS, CloudWatch) 호출

두 가지 모두 응답 결과에는 영향을 주지 않습니다.
기본값은 아무것도 하지 않는 no_synthetic_work 입니다.
"""

import os
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Callable, Dict, Optional

from counter_lambda.telemetry import logger, tracer

SyntheticWork = Callable[[], Optional[int]]

DECORATIVE_CALLS = {
    "s3": lambda client: client.list_buckets(),
    "sqs": lambda client: client.list_queues(),
    "cloudwatch": lambda client: client.list_metrics(),
}


def no_synthetic_work() -> Optional[int]:
    return None


def make_cpu_burner(iterations: int = 1000) -> SyntheticWork:
    """
    CPU를 소모하는 작업을 만듭니다.

    iterations=1000 이면 결과는 항상 1498500 입니다.
    """

    def burn() -> int:
        return sum(i + i * 2 for i in range(iterations))

    return burn


def precomputed_value() -> int:
    """최적화 변형이 INIT 단계에서 한 번만 계산해 두는 값"""
    return (os.cpu_count() or 1) * 42


def _call_quietly(provider, service_name: str) -> bool:
    try:
        DECORATIVE_CALLS[service_name](provider.client(service_name))
    except Exception as e:
        # 장식용 호출의 실패는 응답과 무관합니다. 에러로 기록하지 않습니다.
        logger.debug(f"{service_name} 장식용 호출 실패: {type(e).__name__}")
        return False
    logger.info(f"{service_name} 장식용 호출 완료")
    return True


@tracer.capture_method
def call_decorative_services(provider, timeout: float = 1.0) -> Dict[str, bool]:
    """
    S3, SQS, CloudWatch를 동시에 호출하고 최대 timeout초까지만 기다립니다.

    Args:
        provider: ClientProvider
        timeout: 대기 시간(초). 넘기면 남은 호출은 결과를 기다리지 않습니다.

    Returns:
        서비스 이름 → 성공 여부 (시간 초과도 False)
    """
    executor = ThreadPoolExecutor(max_workers=len(DECORATIVE_CALLS))
    futures = {
        name: executor.submit(_call_quietly, provider, name)
        for name in DECORATIVE_CALLS
    }
    wait(futures.values(), timeout=timeout)
    executor.shutdown(wait=False, cancel_futures=True)

    return {
        name: future.done() and not future.cancelled() and future.result()
        for name, future in futures.items()
    }
