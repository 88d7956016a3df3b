from typing import Protocol

import httpx
from pydantic import TypeAdapter, ValidationError

from .._config import Config
from .._utils import Endpoint, RequestSpec
from .._utils.constants import (
    FEATURE_ENDPOINT,
    FEATURE_FLAGS_ENDPOINT,
    FEATURE_USAGES_ENDPOINT,
)
from ..models import (
    FeatureDeclaration,
    FeatureFlag,
    FeatureUsage,
    MissingPublicKeyError,
    RemoteConnectionError,
    RemoteFetchError,
)
from ._base_service import BaseService

_flags_adapter = TypeAdapter(dict[str, FeatureFlag])


class FeatureGateway(Protocol):
    """Remote operations the :class:`~flipflag.FlipFlag` manager relies on."""

    @property
    def can_declare(self) -> bool: ...

    async def fetch_flags_async(self) -> dict[str, FeatureFlag]: ...

    async def declare_feature_async(
        self, feature_name: str, declaration: FeatureDeclaration
    ) -> bool: ...

    async def report_usage_async(self, usages: list[FeatureUsage]) -> bool: ...

    async def aclose(self) -> None: ...


class FeaturesService(BaseService):
    """Service for the FlipFlag feature endpoints.

    Reading flags and reporting usage need the public key. Registering
    features needs the private key; a client configured without one can
    still read flags, it just never declares anything.
    """

    def __init__(self, config: Config) -> None:
        super().__init__(config=config)

    @property
    def can_declare(self) -> bool:
        return bool(self._config.private_key)

    def _require_public_key(self) -> str:
        if not self._config.public_key:
            raise MissingPublicKeyError()
        return self._config.public_key

    async def fetch_flags_async(self) -> dict[str, FeatureFlag]:
        """Fetch every feature flag of the project.

        Returns:
            dict[str, FeatureFlag]: Flags keyed by feature name.

        Raises:
            MissingPublicKeyError: No public key is configured.
            MissingBaseUrlError: No API url is configured.
            RemoteFetchError: The API answered with a non-2xx status or a
                payload that is not a mapping of feature flags.
            RemoteConnectionError: The API could not be reached.
        """
        spec = self._fetch_flags_spec(self._require_public_key())
        try:
            response = await self.request_async(
                spec.method,
                spec.endpoint,
                params=spec.params,
                headers=spec.headers,
            )
        except httpx.RequestError as e:
            raise RemoteConnectionError(self.url_for(spec.endpoint), e) from e

        if not response.is_success:
            raise RemoteFetchError(response.status_code, response.text)

        try:
            return _flags_adapter.validate_json(response.content)
        except ValidationError as e:
            raise RemoteFetchError(
                response.status_code,
                response.text,
                reason=f"unexpected payload: {e.error_count()} validation error(s)",
            ) from e

    async def declare_feature_async(
        self, feature_name: str, declaration: FeatureDeclaration
    ) -> bool:
        """Register a feature and its activation times.

        Best effort: failures are logged and reported through the return
        value, never raised.

        Returns:
            bool: ``True`` if the API accepted the declaration, ``False`` if it
            failed or no private key is configured.
        """
        if not self.can_declare:
            return False

        spec = self._declare_feature_spec(feature_name, declaration)
        try:
            response = await self.request_async(
                spec.method,
                spec.endpoint,
                json=spec.json,
                headers=spec.headers,
            )
        except httpx.HTTPError as e:
            self._logger.warning(f"Create Feature: {feature_name}: {e!r}")
            return False

        if not response.is_success:
            self._logger.warning(
                f"Create Feature: {feature_name}: {response.status_code} - {response.text}"
            )
            return False

        return True

    async def report_usage_async(self, usages: list[FeatureUsage]) -> bool:
        """Send the collected feature usage to the API.

        Raises:
            MissingPublicKeyError: No public key is configured. Unlike network
                failures this is not swallowed.
        """
        spec = self._report_usage_spec(self._require_public_key(), usages)
        try:
            response = await self.request_async(
                spec.method,
                spec.endpoint,
                json=spec.json,
                headers=spec.headers,
            )
        except httpx.HTTPError as e:
            self._logger.warning(f"Feature Usage Sync: {e!r}")
            return False

        if not response.is_success:
            self._logger.warning(
                f"Feature Usage Sync: {response.status_code} - {response.text}"
            )
            return False

        return True

    def _fetch_flags_spec(self, public_key: str) -> RequestSpec:
        return RequestSpec(
            method="GET",
            endpoint=Endpoint(FEATURE_FLAGS_ENDPOINT),
            params={"publicKey": public_key},
        )

    def _declare_feature_spec(
        self, feature_name: str, declaration: FeatureDeclaration
    ) -> RequestSpec:
        return RequestSpec(
            method="POST",
            endpoint=Endpoint(FEATURE_ENDPOINT),
            headers={"Content-Type": "application/json"},
            json={
                "featureName": feature_name,
                "privateKey": self._config.private_key,
                **declaration.model_dump(mode="json", by_alias=True),
            },
        )

    def _report_usage_spec(
        self, public_key: str, usages: list[FeatureUsage]
    ) -> RequestSpec:
        return RequestSpec(
            method="POST",
            endpoint=Endpoint(FEATURE_USAGES_ENDPOINT),
            headers={"Content-Type": "application/json"},
            json={
                "publicKey": public_key,
                "usages": [
                    usage.model_dump(mode="json", by_alias=True) for usage in usages
                ],
            },
        )
