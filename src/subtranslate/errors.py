from __future__ import annotations


class SubtranslateError(Exception):
    """
    所有 subtranslate 错误的基类。

    调用方（CLI / Web）只需捕获该类型，即可拿到一条面向用户的可读信息。
    """


class ContentError(SubtranslateError):
    """输入文件中找不到任何有效字幕块，需要用户修正文件。"""


class ServiceResponseError(SubtranslateError):
    """翻译服务返回了不符合约定的内容。"""


class ServiceFormatError(ServiceResponseError):
    """响应不是合法 JSON，或结构不是对象数组。"""


class ServiceCardinalityError(ServiceResponseError):
    """响应条目数不对，或 id 缺失 / 重复。"""


class ServiceNoopError(ServiceResponseError):
    """服务原样返回了输入文本（仅严格重试策略会判定）。"""


class TransportError(SubtranslateError):
    """调用本身失败：网络、鉴权、HTTP 状态码等。"""


class TranslationFailedError(SubtranslateError):
    """
    严格重试策略在用尽全部尝试后抛出。

    last_error 保存最后一次观察到的原因，同时也通过 __cause__ 链接。
    """

    def __init__(self, message: str, last_error: Exception | None = None) -> None:
        super().__init__(message)
        self.last_error = last_error
