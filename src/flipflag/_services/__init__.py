from ._base_service import BaseService
from .features_service import FeatureGateway, FeaturesService

__all__ = [
    "BaseService",
    "FeatureGateway",
    "FeaturesService",
]
