"""配置文件监听和热重载模块

监听配置文件的变化，文件被修改后校验新内容并触发重载回调。
共享 Copilot token 的刷新即通过此处的回调完成。
"""

import asyncio
import json
import os
import threading
from collections.abc import Awaitable, Callable
from pathlib import Path

import aiofiles
from loguru import logger
from pydantic import ValidationError
from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from .settings import DEFAULT_CONFIG_PATH, Config

ReloadCallback = Callable[[], Awaitable[None] | None]


class ConfigFileHandler(FileSystemEventHandler):
    """配置文件变化事件处理器"""

    def __init__(self, config_path: Path, callback: Callable[[], None], delay: float = 0.1):
        self.config_path = config_path.resolve()
        self.callback = callback
        self.delay = delay
        self._last_modified = 0.0

    def on_modified(self, event) -> None:
        if event.is_directory:
            return

        if Path(event.src_path).resolve() != self.config_path:
            return

        # 同一次写入可能触发多个事件
        try:
            current_modified = self.config_path.stat().st_mtime
        except OSError:
            return
        if current_modified == self._last_modified:
            return
        self._last_modified = current_modified

        logger.info(f"配置文件已修改: {self.config_path}")
        threading.Timer(self.delay, self._execute_callback).start()

    def _execute_callback(self) -> None:
        try:
            self.callback()
        except Exception as e:
            logger.error(f"配置重载回调执行失败: {e}")


class ConfigWatcher:
    """配置文件监听器

    回调在应用事件循环中执行，由 ``start_watching`` 时捕获的循环调度。
    """

    def __init__(self, config_path: str | None = None):
        if config_path is None:
            config_path = os.getenv("CONFIG_PATH", DEFAULT_CONFIG_PATH)

        self.config_path = Path(config_path).resolve()
        self.observer: Observer | None = None
        self.handler: ConfigFileHandler | None = None
        self._callbacks: list[ReloadCallback] = []
        self._loop: asyncio.AbstractEventLoop | None = None

    def add_reload_callback(self, callback: ReloadCallback) -> None:
        """添加配置重载回调（同步或异步函数均可）"""
        self._callbacks.append(callback)

    async def start_watching(self) -> None:
        """开始监听配置文件变化"""
        if self.observer is not None:
            logger.warning("配置监听器已在运行")
            return

        if not self.config_path.exists():
            logger.warning(f"配置文件不存在，跳过监听: {self.config_path}")
            return

        self._loop = asyncio.get_running_loop()
        self.handler = ConfigFileHandler(self.config_path, self._on_config_changed)

        self.observer = Observer()
        self.observer.schedule(self.handler, str(self.config_path.parent), recursive=False)
        self.observer.start()

        logger.info(f"开始监听配置文件: {self.config_path}")

    def stop_watching(self) -> None:
        """停止监听配置文件变化"""
        if self.observer is None:
            return

        logger.info("停止配置文件监听")
        self.observer.stop()
        self.observer.join()
        self.observer = None
        self.handler = None
        self._loop = None

    @property
    def is_watching(self) -> bool:
        return self.observer is not None

    def _on_config_changed(self) -> None:
        """在 watchdog 线程中被调用，把处理逻辑转交给事件循环"""
        if self._loop is None or self._loop.is_closed():
            logger.error("事件循环不可用，跳过配置重载")
            return
        asyncio.run_coroutine_threadsafe(self.process_config_change(), self._loop)

    async def process_config_change(self) -> bool:
        """校验配置文件并依次执行重载回调

        Returns:
            bool: 配置文件有效且回调已执行时返回 True
        """
        logger.info("检测到配置文件变化，开始重新加载...")
        if not await self._validate_config_file():
            logger.error("配置文件格式无效，跳过重载")
            return False

        for callback in self._callbacks:
            name = getattr(callback, "__name__", repr(callback))
            try:
                result = callback()
                if asyncio.iscoroutine(result):
                    await result
                logger.debug(f"配置重载回调执行成功: {name}")
            except Exception as e:
                logger.error(f"配置重载回调执行失败 {name}: {e}")

        logger.info("配置重载完成")
        return True

    async def _validate_config_file(self) -> bool:
        try:
            async with aiofiles.open(self.config_path, encoding="utf-8") as f:
                content = await f.read()
            Config.model_validate(json.loads(content))
            return True
        except (json.JSONDecodeError, ValidationError, OSError) as e:
            logger.error(f"配置文件验证失败: {e}")
            return False
