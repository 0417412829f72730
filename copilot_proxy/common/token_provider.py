"""共享 Copilot token 的只读访问接口

代理核心只通过 ``TokenProvider.current_token()`` 读取进程级 token；
token 的获取与刷新由外部组件（配置热重载）负责，调用 ``update``。
"""

import threading
from typing import Protocol, runtime_checkable


@runtime_checkable
class TokenProvider(Protocol):
    """当前 Copilot token 的只读访问器"""

    def current_token(self) -> str | None: ...


class SharedTokenProvider:
    """持有进程级共享 token，可由刷新方原子替换"""

    def __init__(self, token: str | None = None):
        self._token = token or None
        self._lock = threading.Lock()

    def current_token(self) -> str | None:
        return self._token

    def update(self, token: str | None) -> None:
        """由外部刷新方调用，替换当前 token"""
        with self._lock:
            self._token = token or None
