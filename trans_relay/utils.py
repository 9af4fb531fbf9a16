# trans_relay/utils.py
"""本模块包含项目范围内的通用工具函数。"""

import re

from langcodes import Language
from langcodes.tag_parser import LanguageTagError

# 语言子标签应该由 2-3 个字母组成 (BCP 47)
LANGUAGE_SUBTAG_PATTERN = re.compile(r"^[a-zA-Z]{2,3}$")


def validate_lang_code(code: str) -> str:
    """使用 `langcodes` 校验单个语言代码是否符合 BCP 47 规范，并原样返回。"""
    try:
        lang = Language.get(code)
        if not lang.language or not LANGUAGE_SUBTAG_PATTERN.match(lang.language):
            raise LanguageTagError(
                f"Tag '{code}' lacks a valid 2-3 letter language subtag."
            )
    except LanguageTagError as e:
        raise ValueError(f"提供的语言代码 '{code}' 格式无效。原因: {e}") from e
    return code


def fill_project_placeholder(path: str, project_id: str) -> str:
    """
    规范化 API 路径：去掉开头的斜杠，并把 `[projectid]` 占位符替换为实际的项目 ID。
    """
    if path.startswith("/"):
        path = path[1:]
    return path.replace("[projectid]", str(project_id))
