from datetime import datetime, timezone
from typing import Mapping, Optional

from .models import FeatureFlag, FeatureUsage


class FlagCache:
    """Feature flags as last fetched from the FlipFlag API."""

    def __init__(self) -> None:
        self._flags: dict[str, FeatureFlag] = {}

    def get(self, feature_name: str) -> Optional[FeatureFlag]:
        return self._flags.get(feature_name)

    def replace(self, flags: Mapping[str, FeatureFlag]) -> None:
        """Swap in a freshly fetched mapping; unknown keys are forgotten."""
        self._flags = dict(flags)

    def clear(self) -> None:
        self._flags = {}

    def __contains__(self, feature_name: object) -> bool:
        return feature_name in self._flags

    def __len__(self) -> int:
        return len(self._flags)


class UsageRecorder:
    """Latest use of every checked feature, waiting to be reported."""

    def __init__(self) -> None:
        self._usages: dict[str, FeatureUsage] = {}

    def record_use(self, feature_name: str) -> FeatureUsage:
        usage = self._usages.get(feature_name)
        now = datetime.now(timezone.utc)
        if usage is None:
            usage = FeatureUsage(feature_name=feature_name, used_at=now)
            self._usages[feature_name] = usage
        else:
            usage.used_at = now
        return usage

    def drain(self) -> list[FeatureUsage]:
        """Copy of the pending records. Nothing is removed."""
        return [usage.model_copy() for usage in self._usages.values()]

    def acknowledge(self, flushed: list[FeatureUsage]) -> None:
        """Forget records that were reported and not used again since."""
        for sent in flushed:
            current = self._usages.get(sent.feature_name)
            if current is not None and current.used_at == sent.used_at:
                del self._usages[sent.feature_name]

    def clear(self) -> None:
        self._usages = {}

    def __len__(self) -> int:
        return len(self._usages)

    def __contains__(self, feature_name: object) -> bool:
        return feature_name in self._usages
