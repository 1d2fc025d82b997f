"""Services package"""

from .s3_service import S3Service
from .notification_service import NotificationService
from .labor_cost_service import LaborCostAggregator

__all__ = ["S3Service", "NotificationService", "LaborCostAggregator"]
