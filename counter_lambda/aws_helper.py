"""
aws_helper.py - boto3 세션과 클라이언트 관리

-- 왜 이 유틸리티가 필요한가?
콜드 스타트 비교의 핵심은 "클라이언트를 언제 만드는가" 입니다.
  - 재사용(reuse): 실행 환경이 만들어질 때 한 번 생성하고 모든 요청이 공유
  - 요청별(per-invocation): 요청마다 새로 생성하고 요청이 끝나면 버림

이 파일은 두 방식을 ClientProvider 하나로 감싸서 핸들러에 주입합니다.
핸들러는 자신이 어느 방식으로 동작하는지 알 필요가 없습니다.

질문: SnapStart 스냅샷에 이미 생성된 클라이언트가 들어 있다면,
      복원 직후 첫 요청은 얼마나 빨라질까요?

SAA 포인트: boto3는 AWS CLI와 같은 자격 증명 체인(Credential Chain)을 사용합니다.
           Lambda에서는 실행 역할(Execution Role)의 임시 자격 증명이 환경변수로 주입됩니다.
"""

from typing import Dict, Iterable, Optional

import boto3

DYNAMODB = "dynamodb"

# 비성능 변형은 원래 다섯 개 서비스 클라이언트를 모두 생성했습니다.
ALL_SERVICES = ("dynamodb", "s3", "sqs", "secretsmanager", "cloudwatch")


def get_session(
    profile_name: Optional[str] = None,
    region_name: Optional[str] = None,
) -> boto3.Session:
    """
    AWS 세션을 생성합니다.

    Args:
        profile_name: AWS CLI 프로파일 이름 (None이면 기본 자격 증명 체인)
        region_name: AWS 리전 (None이면 AWS_REGION / AWS_DEFAULT_REGION)

    Returns:
        boto3.Session 인스턴스
    """
    return boto3.Session(profile_name=profile_name, region_name=region_name)


class ClientProvider:
    """
    서비스 클라이언트와 DynamoDB 리소스를 제공합니다.

    reuse=True 이면 생성자에서 모든 객체를 미리 만들고, 이후에는 같은 객체를
    돌려줍니다. 생성 이후 변경하지 않으므로 여러 스레드가 공유해도 됩니다.
    reuse=False 이면 호출할 때마다 새 객체를 만듭니다.
    """

    def __init__(
        self,
        reuse: bool,
        services: Iterable[str] = (DYNAMODB,),
        region_name: Optional[str] = None,
        session: Optional[boto3.Session] = None,
    ):
        self.reuse = reuse
        self.services = tuple(services)
        self.region_name = region_name
        self._session = session
        self._clients: Dict[str, object] = {}
        self._resource = None
        self.constructed = 0

        if reuse:
            # INIT 단계(또는 SnapStart 스냅샷 시점)에 한 번만 실행됩니다.
            for service_name in self.services:
                self._clients[service_name] = self._new_client(service_name)
            if DYNAMODB in self.services:
                self._resource = self._new_resource(DYNAMODB)

    def _current_session(self) -> boto3.Session:
        if self._session is not None:
            return self._session
        return get_session(region_name=self.region_name)

    def _new_client(self, service_name: str):
        self.constructed += 1
        return self._current_session().client(service_name)

    def _new_resource(self, service_name: str):
        self.constructed += 1
        return self._current_session().resource(service_name)

    def client(self, service_name: str):
        """서비스 클라이언트를 반환합니다 (예: 's3', 'sqs', 'cloudwatch')"""
        if self.reuse and service_name in self._clients:
            return self._clients[service_name]
        return self._new_client(service_name)

    def resource(self, service_name: str = DYNAMODB):
        if self.reuse and self._resource is not None and service_name == DYNAMODB:
            return self._resource
        return self._new_resource(service_name)

    def table(self, table_name: str):
        """
        DynamoDB Table 객체를 반환합니다.

        Table 객체 자체는 네트워크 호출 없이 만들어지므로
        리소스만 재사용하면 충분합니다.
        """
        return self.resource(DYNAMODB).Table(table_name)
