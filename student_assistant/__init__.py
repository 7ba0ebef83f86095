"""Student Assistant 顶层包。

该包提供学生助手客户端的核心实现，
包括配置加载、领域模型、远端服务客户端、登录状态机、
路由守卫、会话管理与本地持久化存储等能力。
"""

from student_assistant.api.service import AppContext, build_context

__all__ = ["AppContext", "build_context"]
