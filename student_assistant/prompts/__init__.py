"""问候语与快捷问题加载工具。

按语言(locale) 从 prompts/<locale> 目录读取：
- greeting.md: 新会话的第一条助手消息。
- suggestions.md: 快捷问题，每行一条，# 开头为注释。
"""

from functools import lru_cache
from pathlib import Path
from typing import Tuple


PROMPTS_DIR = Path(__file__).resolve().parent


@lru_cache(maxsize=8)
def load_greeting(locale: str = "en") -> str:
    """加载新会话的问候语。"""

    fname = PROMPTS_DIR / locale / "greeting.md"
    return fname.read_text(encoding="utf-8").strip()


@lru_cache(maxsize=8)
def load_suggestions(locale: str = "en") -> Tuple[str, ...]:
    fname = PROMPTS_DIR / locale / "suggestions.md"
    lines = fname.read_text(encoding="utf-8").splitlines()
    return tuple(s.strip() for s in lines if s.strip() and not s.strip().startswith("#"))
