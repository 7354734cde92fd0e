class ScannerError(Exception):
    """crypto_scanner 所有异常的基类。"""


class UpstreamUnavailable(ScannerError):
    """行情接口不可用：网络错误、超时、非 2xx 状态或返回格式不对。"""

    def __init__(self, endpoint: str, reason: str) -> None:
        super().__init__(f"{endpoint}: {reason}")
        self.endpoint = endpoint
        self.reason = reason
