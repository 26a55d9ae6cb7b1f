import logging
from typing import Any, Dict, List, Optional, Sequence, Union

from api.api_client import PRTGClient
from api.parser import extract_items
from api.session import Session

logger = logging.getLogger(__name__)

FILTER_PREFIX = "filter_"

DEFAULT_COLUMNS = {
    "devices": ["objid", "name", "host", "group", "probe", "status", "tags", "active"],
    "groups": ["objid", "name", "probe", "status", "tags", "active"],
    "sensors": ["objid", "name", "device", "group", "probe", "status", "lastvalue", "message", "tags", "active"],
}


def build_filters(filters: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """为过滤条件补全 filter_ 前缀，已带前缀的保持不变"""
    result = {}
    for key, value in (filters or {}).items():
        if value is None:
            continue
        name = key if key.startswith(FILTER_PREFIX) else f"{FILTER_PREFIX}{key}"
        result[name] = value
    return result


class ObjectService:
    """设备、分组、传感器列表查询"""

    def __init__(self, client: PRTGClient):
        self.client = client

    def list_objects(self, content: str, columns: Optional[Union[str, Sequence[str]]] = None,
                     name: Optional[str] = None, object_id: Optional[Union[int, str]] = None,
                     filters: Optional[Dict[str, Any]] = None, count: Optional[Union[int, str]] = None,
                     session: Optional[Session] = None) -> List[Dict[str, str]]:
        """
        查询对象列表

        Args:
            content: 对象类型，devices / groups / sensors
            columns: 返回的列，未指定时使用该类型的默认列
            name: 按名称过滤
            object_id: 按对象ID过滤
            filters: 其他过滤条件，键名会自动补全 filter_ 前缀
            count: 返回条数上限
            session: 会话

        Returns:
            每个 <item> 对应一个字段字典
        """
        if columns is None:
            columns = DEFAULT_COLUMNS.get(content, ["objid", "name"])
        if not isinstance(columns, str):
            columns = ",".join(columns)

        params: Dict[str, Any] = {"content": content, "columns": columns}
        params.update(build_filters({"name": name, "objid": object_id}))
        params.update(build_filters(filters))
        if count is not None:
            params["count"] = count

        doc = self.client.invoke("table.xml", params, session=session)
        items = extract_items(doc)
        logger.info(f"查询 {content} 成功, 返回 {len(items)} 条记录")
        return items

    def list_devices(self, name: Optional[str] = None, object_id: Optional[Union[int, str]] = None,
                     filters: Optional[Dict[str, Any]] = None, columns: Optional[Sequence[str]] = None,
                     session: Optional[Session] = None) -> List[Dict[str, str]]:
        """获取设备列表"""
        return self.list_objects("devices", columns, name, object_id, filters, session=session)

    def list_groups(self, name: Optional[str] = None, object_id: Optional[Union[int, str]] = None,
                    filters: Optional[Dict[str, Any]] = None, columns: Optional[Sequence[str]] = None,
                    session: Optional[Session] = None) -> List[Dict[str, str]]:
        """获取分组列表"""
        return self.list_objects("groups", columns, name, object_id, filters, session=session)

    def list_sensors(self, name: Optional[str] = None, object_id: Optional[Union[int, str]] = None,
                     filters: Optional[Dict[str, Any]] = None, columns: Optional[Sequence[str]] = None,
                     session: Optional[Session] = None) -> List[Dict[str, str]]:
        """获取传感器列表"""
        return self.list_objects("sensors", columns, name, object_id, filters, session=session)
