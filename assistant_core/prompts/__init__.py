"""提示词加载工具。

按语言(locale) 从 prompts/<locale> 目录读取 markdown 模板，
模板中的 $name 占位符用 string.Template 替换。
"""

from pathlib import Path
from string import Template


PROMPTS_DIR = Path(__file__).resolve().parent


def load_prompt(name: str, locale: str = "en") -> str:
    """读取原始模板文本，name 不带扩展名，例如 "assistant_system"。"""

    fname = PROMPTS_DIR / locale / f"{name}.md"
    return fname.read_text(encoding="utf-8").strip()


def render_prompt(name: str, locale: str = "en", **values: object) -> str:
    """读取模板并替换占位符。未提供的占位符原样保留。"""

    return Template(load_prompt(name, locale)).safe_substitute(
        {key: str(value) for key, value in values.items()}
    )


def load_system_prompt(locale: str = "en") -> str:
    """通用对话的默认 system instruction。"""

    return load_prompt("assistant_system", locale)
