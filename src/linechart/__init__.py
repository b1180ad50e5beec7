"""LineChart 微服务：将点序列渲染为折线图并通过链接提供下载。"""

__version__ = "1.0.0"
