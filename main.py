#!/usr/bin/env python3
"""
Copilot Proxy 启动脚本

使用 JSON 配置文件中的 host 和 port 启动服务器。
配置优先级：
1. 命令行指定的 --config 参数
2. 环境变量 CONFIG_PATH 指定的路径
3. ./config/settings.json (默认)
4. ./config/example.json (模板)
"""

import argparse
import os
import sys

import uvicorn

from copilot_proxy.config.settings import DEFAULT_CONFIG_PATH, Config


def main():
    """主启动函数"""
    parser = argparse.ArgumentParser(description="启动 Copilot Proxy")
    parser.add_argument(
        "--config", type=str, help=f"JSON 配置文件路径 (默认为 {DEFAULT_CONFIG_PATH})"
    )
    args = parser.parse_args()

    if args.config:
        # 应用内的配置加载和热重载都读取 CONFIG_PATH
        os.environ["CONFIG_PATH"] = args.config
    config_path = os.getenv("CONFIG_PATH", DEFAULT_CONFIG_PATH)

    try:
        config = Config.from_file_sync(config_path)
        host, port = config.server.host, config.server.port

        print("🚀 启动 Copilot Proxy...")
        print(f"   配置文件: {config_path}")
        print(f"   监听地址: {host}:{port}")
        print(f"   上游服务: {config.upstream.base_url}")
        print()
        print("📋 重要端点:")
        print(f"   Responses: http://{host}:{port}/v1/responses")
        print(f"   健康检查: http://{host}:{port}/health")
        print()

        # 单进程运行，多个 worker 之间无法共享热重载后的 token
        uvicorn.run(
            "copilot_proxy.main:app",
            host=host,
            port=port,
            timeout_keep_alive=60,
            log_level=config.logging.level.lower(),
        )

    except Exception as e:
        print(f"❌ 启动失败: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
