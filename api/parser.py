"""
响应解析
服务器返回的XML/HTML中部分字段包裹在CDATA中，先展开CDATA再交给BeautifulSoup解析
"""

import html
import re
import warnings
from typing import Dict, List, Optional

from bs4 import BeautifulSoup, Tag, XMLParsedAsHTMLWarning
from loguru import logger

from common.exceptions import ResponseParseError

CDATA_PATTERN = re.compile(r'<!\[CDATA\[(.*?)\]\]>', re.DOTALL)
OBJECT_ID_PATTERN = re.compile(r'id=(\d+)')

# 响应统一使用 html.parser 解析
warnings.filterwarnings("ignore", category=XMLParsedAsHTMLWarning)


def unwrap_cdata(text: str) -> str:
    """把 <![CDATA[...]]> 替换为转义后的内容，解析后的文本与CDATA原文一致"""
    return CDATA_PATTERN.sub(lambda m: html.escape(m.group(1), quote=False), text)


def parse_document(text: str) -> BeautifulSoup:
    return BeautifulSoup(unwrap_cdata(text or ""), 'html.parser')


def _tag_text(tag: Tag) -> str:
    return tag.get_text().strip()


def _leaf_tags(node: Tag) -> List[Tag]:
    return node.find_all(recursive=False)


def extract_record(doc: BeautifulSoup, root: str) -> Dict[str, str]:
    """
    提取根节点下的直接子节点为扁平字典
    :param doc: 已解析的文档
    :param root: 根节点名称，如 sensordata
    :return: 字段名 -> 文本；找不到根节点时退化为文档中所有叶子节点
    """
    node = doc.find(root)
    if node is not None:
        return {child.name: _tag_text(child) for child in _leaf_tags(node)}

    logger.warning(f"响应中未找到 <{root}> 节点，使用全部叶子节点")
    return {tag.name: _tag_text(tag) for tag in doc.find_all(True) if not tag.find(True)}


def extract_items(doc: BeautifulSoup, tag: str = "item") -> List[Dict[str, str]]:
    """提取列表接口中的每个 <item> 记录"""
    items = []
    for item in doc.find_all(tag):
        items.append({child.name: _tag_text(child) for child in _leaf_tags(item)})
    return items


def extract_field(doc: BeautifulSoup, name: str) -> Optional[str]:
    node = doc.find(name)
    if node is None:
        return None
    return _tag_text(node)


def extract_object_id(*texts: Optional[str]) -> int:
    """
    从响应内容中解析 id=数字，按顺序尝试每个文本
    :raises ResponseParseError: 所有文本都不包含对象ID
    """
    for text in texts:
        if not text:
            continue
        match = OBJECT_ID_PATTERN.search(text)
        if match:
            return int(match.group(1))
    raise ResponseParseError("响应中未找到新对象ID (id=数字)")
