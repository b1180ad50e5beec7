from linechart.models.schemas import ChartDataResponse, ChartLinkResponse, MessageResponse

__all__ = ["ChartDataResponse", "ChartLinkResponse", "MessageResponse"]
