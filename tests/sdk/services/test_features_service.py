import json
import logging
from datetime import datetime, timezone

import httpx
import pytest
from pytest_httpx import HTTPXMock

from flipflag import (
    Config,
    DeclarationTime,
    FeatureDeclaration,
    FeatureFlag,
    FeatureUsage,
    MissingBaseUrlError,
    MissingPublicKeyError,
    RemoteConnectionError,
    RemoteFetchError,
)
from flipflag._services import FeaturesService


@pytest.fixture
def service(config: Config) -> FeaturesService:
    return FeaturesService(config=config)


@pytest.fixture
def declaration() -> FeatureDeclaration:
    return FeatureDeclaration(
        times=[
            DeclarationTime(
                email="dev@example.com",
                start=datetime(2025, 1, 1, 10, 0, tzinfo=timezone.utc),
                end=None,
            )
        ]
    )


class TestFeaturesService:
    class TestFetchFlags:
        @pytest.mark.anyio
        async def test_fetch_flags(
            self,
            httpx_mock: HTTPXMock,
            service: FeaturesService,
            base_url: str,
            public_key: str,
        ) -> None:
            httpx_mock.add_response(
                url=f"{base_url}/v1/sdk/feature/flags?publicKey={public_key}",
                status_code=200,
                json={"my.feature": {"enabled": True}, "other": {"enabled": False}},
            )

            flags = await service.fetch_flags_async()

            assert flags == {
                "my.feature": FeatureFlag(enabled=True),
                "other": FeatureFlag(enabled=False),
            }

            sent_request = httpx_mock.get_request()
            if sent_request is None:
                raise Exception("No request was sent")

            assert sent_request.method == "GET"
            assert sent_request.url.params["publicKey"] == public_key

        @pytest.mark.anyio
        async def test_fetch_flags_keeps_extra_fields(
            self,
            httpx_mock: HTTPXMock,
            service: FeaturesService,
            base_url: str,
        ) -> None:
            httpx_mock.add_response(
                url=f"{base_url}/v1/sdk/feature/flags?publicKey=pub",
                json={"my.feature": {"enabled": True, "type": "release"}},
            )

            flags = await service.fetch_flags_async()

            assert flags["my.feature"].enabled is True
            assert flags["my.feature"].model_extra == {"type": "release"}

        @pytest.mark.anyio
        async def test_non_success_status(
            self,
            httpx_mock: HTTPXMock,
            service: FeaturesService,
            base_url: str,
        ) -> None:
            httpx_mock.add_response(
                url=f"{base_url}/v1/sdk/feature/flags?publicKey=pub",
                status_code=401,
                text="invalid public key",
            )

            with pytest.raises(RemoteFetchError, match="401 - invalid public key") as exc_info:
                await service.fetch_flags_async()

            assert exc_info.value.status_code == 401
            assert exc_info.value.body == "invalid public key"

        @pytest.mark.anyio
        @pytest.mark.parametrize(
            "content", [b"[]", b"not json", b'{"my.feature": {"enabled": "maybe"}}']
        )
        async def test_unexpected_payload(
            self,
            httpx_mock: HTTPXMock,
            service: FeaturesService,
            base_url: str,
            content: bytes,
        ) -> None:
            httpx_mock.add_response(
                url=f"{base_url}/v1/sdk/feature/flags?publicKey=pub",
                content=content,
            )

            with pytest.raises(RemoteFetchError, match="unexpected payload") as exc_info:
                await service.fetch_flags_async()

            assert exc_info.value.status_code == 200

        @pytest.mark.anyio
        async def test_connection_error(
            self,
            httpx_mock: HTTPXMock,
            service: FeaturesService,
            base_url: str,
        ) -> None:
            httpx_mock.add_exception(
                httpx.ConnectError("connection refused"),
                url=f"{base_url}/v1/sdk/feature/flags?publicKey=pub",
            )

            with pytest.raises(RemoteConnectionError, match="connection refused"):
                await service.fetch_flags_async()

        @pytest.mark.anyio
        async def test_missing_public_key(self, base_url: str) -> None:
            service = FeaturesService(config=Config(api_url=base_url))

            with pytest.raises(MissingPublicKeyError):
                await service.fetch_flags_async()

        @pytest.mark.anyio
        async def test_missing_base_url(self, public_key: str) -> None:
            service = FeaturesService(config=Config(public_key=public_key, api_url=""))

            with pytest.raises(MissingBaseUrlError):
                await service.fetch_flags_async()

    class TestDeclareFeature:
        @pytest.mark.anyio
        async def test_declare_feature(
            self,
            httpx_mock: HTTPXMock,
            service: FeaturesService,
            base_url: str,
            private_key: str,
            declaration: FeatureDeclaration,
        ) -> None:
            httpx_mock.add_response(
                url=f"{base_url}/v1/sdk/feature", method="POST", status_code=201
            )

            assert await service.declare_feature_async("my.feature", declaration) is True

            sent_request = httpx_mock.get_request()
            if sent_request is None:
                raise Exception("No request was sent")

            assert sent_request.method == "POST"
            assert sent_request.headers["Content-Type"] == "application/json"
            body = json.loads(sent_request.content)
            assert body == {
                "featureName": "my.feature",
                "privateKey": private_key,
                "times": declaration.model_dump(mode="json")["times"],
            }
            assert body["times"][0]["email"] == "dev@example.com"
            assert body["times"][0]["end"] is None

        @pytest.mark.anyio
        async def test_declare_without_times(
            self,
            httpx_mock: HTTPXMock,
            service: FeaturesService,
            base_url: str,
        ) -> None:
            httpx_mock.add_response(url=f"{base_url}/v1/sdk/feature", method="POST")

            await service.declare_feature_async("new.feature", FeatureDeclaration(times=[]))

            body = json.loads(httpx_mock.get_request().content)
            assert body["featureName"] == "new.feature"
            assert body["times"] == []

        @pytest.mark.anyio
        async def test_no_private_key_makes_no_request(
            self,
            httpx_mock: HTTPXMock,
            base_url: str,
            public_key: str,
            declaration: FeatureDeclaration,
        ) -> None:
            service = FeaturesService(config=Config(public_key=public_key, api_url=base_url))

            assert service.can_declare is False
            assert await service.declare_feature_async("my.feature", declaration) is False
            assert httpx_mock.get_requests() == []

        @pytest.mark.anyio
        async def test_failure_is_logged_not_raised(
            self,
            httpx_mock: HTTPXMock,
            service: FeaturesService,
            base_url: str,
            declaration: FeatureDeclaration,
            caplog: pytest.LogCaptureFixture,
        ) -> None:
            httpx_mock.add_response(
                url=f"{base_url}/v1/sdk/feature",
                method="POST",
                status_code=400,
                text="bad request",
            )

            with caplog.at_level(logging.WARNING, logger="flipflag"):
                result = await service.declare_feature_async("my.feature", declaration)

            assert result is False
            assert "Create Feature: my.feature: 400 - bad request" in caplog.text

        @pytest.mark.anyio
        async def test_connection_error_is_swallowed(
            self,
            httpx_mock: HTTPXMock,
            service: FeaturesService,
            base_url: str,
            declaration: FeatureDeclaration,
        ) -> None:
            httpx_mock.add_exception(
                httpx.ConnectError("connection refused"),
                url=f"{base_url}/v1/sdk/feature",
            )

            assert await service.declare_feature_async("my.feature", declaration) is False

    class TestReportUsage:
        @pytest.mark.anyio
        async def test_report_usage(
            self,
            httpx_mock: HTTPXMock,
            service: FeaturesService,
            base_url: str,
            public_key: str,
        ) -> None:
            httpx_mock.add_response(
                url=f"{base_url}/v1/sdk/feature/usages", method="POST"
            )
            usages = [
                FeatureUsage(
                    feature_name="my.feature",
                    used_at=datetime(2025, 1, 1, 10, 0, tzinfo=timezone.utc),
                )
            ]

            assert await service.report_usage_async(usages) is True

            body = json.loads(httpx_mock.get_request().content)
            assert body["publicKey"] == public_key
            used_at = usages[0].model_dump(mode="json")["used_at"]
            assert body["usages"] == [{"featureName": "my.feature", "usedAt": used_at}]

        @pytest.mark.anyio
        async def test_empty_usage_is_still_reported(
            self,
            httpx_mock: HTTPXMock,
            service: FeaturesService,
            base_url: str,
        ) -> None:
            httpx_mock.add_response(
                url=f"{base_url}/v1/sdk/feature/usages", method="POST"
            )

            assert await service.report_usage_async([]) is True

            body = json.loads(httpx_mock.get_request().content)
            assert body == {"publicKey": "pub", "usages": []}

        @pytest.mark.anyio
        async def test_missing_public_key_raises(self, base_url: str) -> None:
            service = FeaturesService(config=Config(private_key="priv", api_url=base_url))

            with pytest.raises(MissingPublicKeyError):
                await service.report_usage_async([])

        @pytest.mark.anyio
        async def test_failure_is_logged_not_raised(
            self,
            httpx_mock: HTTPXMock,
            service: FeaturesService,
            base_url: str,
            caplog: pytest.LogCaptureFixture,
        ) -> None:
            httpx_mock.add_response(
                url=f"{base_url}/v1/sdk/feature/usages",
                method="POST",
                status_code=403,
                text="forbidden",
            )

            with caplog.at_level(logging.WARNING, logger="flipflag"):
                result = await service.report_usage_async([])

            assert result is False
            assert "Feature Usage Sync: 403 - forbidden" in caplog.text

    class TestRequestSpecs:
        def test_fetch_flags_spec(self, service: FeaturesService) -> None:
            spec = service._fetch_flags_spec("pub")

            assert spec.method == "GET"
            assert spec.endpoint == "/v1/sdk/feature/flags"
            assert spec.params == {"publicKey": "pub"}
            assert spec.json is None

        def test_declare_feature_spec_round_trips_times(
            self, service: FeaturesService, declaration: FeatureDeclaration
        ) -> None:
            spec = service._declare_feature_spec("my.feature", declaration)

            assert spec.endpoint == "/v1/sdk/feature"
            assert spec.json["times"] == declaration.model_dump(mode="json")["times"]
            assert FeatureDeclaration.model_validate({"times": spec.json["times"]}) == declaration
