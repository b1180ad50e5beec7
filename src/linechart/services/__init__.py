"""服务层。"""

from linechart.services.chart_service import ChartService
from linechart.services.worker_pool import WorkerPool

__all__ = ["ChartService", "WorkerPool"]
