"""
测试模块

包含项目的单元测试和集成测试。

测试结构:
- test_*.py: 单元测试
- integration/: 通过 FastAPI TestClient 驱动应用的集成测试
- fixtures.py: 假上游和应用构造工具

测试覆盖:
- 请求规范化
- token 解析与回退
- 上游错误透传和流式回传
- 配置加载和热重载
"""
