import logging
from typing import Dict, Optional, Union

from api.api_client import PRTGClient
from api.parser import extract_field, extract_object_id, extract_record
from api.session import Session
from common.decorators import is_object_id, validate_input
from common.exceptions import ResponseParseError

logger = logging.getLogger(__name__)

ObjectId = Union[int, str]

PAUSE_ACTION = 0
RESUME_ACTION = 1


class SensorService:
    """传感器详情、属性读写、暂停/恢复、克隆"""

    def __init__(self, client: PRTGClient):
        self.client = client

    @validate_input({'sensor_id': is_object_id}, "无效的对象ID")
    def get_sensor_details(self, sensor_id: ObjectId, session: Optional[Session] = None) -> Dict[str, str]:
        """获取传感器详情"""
        doc = self.client.invoke("getsensordetails.xml", {"id": sensor_id}, session=session)
        return extract_record(doc, "sensordata")

    @validate_input({'object_id': is_object_id}, "无效的对象ID")
    def get_property(self, object_id: ObjectId, name: str, session: Optional[Session] = None) -> Optional[str]:
        """读取对象属性，响应中没有 <result> 时返回None"""
        doc = self.client.invoke("getobjectproperty.htm", {"id": object_id, "name": name, "show": "text"},
                                 session=session)
        value = extract_field(doc, "result")
        if value is None:
            logger.warning(f"对象 {object_id} 的属性 {name} 未返回结果")
        return value

    @validate_input({'object_id': is_object_id}, "无效的对象ID")
    def set_property(self, object_id: ObjectId, name: str, value: Union[str, int, float],
                     session: Optional[Session] = None) -> int:
        """设置对象属性，成功时返回对象ID"""
        self.client.invoke("setobjectproperty.htm", {"id": object_id, "name": name, "value": value},
                           session=session)
        logger.info(f"对象 {object_id} 的属性 {name} 已设置")
        return int(object_id)

    @validate_input({'sensor_id': is_object_id}, "无效的对象ID")
    def pause(self, sensor_id: ObjectId, message: Optional[str] = None, duration: Optional[int] = None,
              session: Optional[Session] = None) -> int:
        """
        暂停传感器
        :param sensor_id: 传感器ID
        :param message: 暂停说明
        :param duration: 暂停分钟数，未指定时无限期暂停
        :return: 传感器ID
        """
        if duration is None:
            self.client.invoke("pause.htm", {"id": sensor_id, "action": PAUSE_ACTION, "pausemsg": message},
                               session=session)
        else:
            if duration <= 0:
                raise ValueError(f"暂停时长必须为正数: {duration}")
            self.client.invoke("pauseobjectfor.htm", {"id": sensor_id, "duration": duration, "pausemsg": message},
                               session=session)
        logger.info(f"传感器 {sensor_id} 已暂停")
        return int(sensor_id)

    @validate_input({'sensor_id': is_object_id}, "无效的对象ID")
    def resume(self, sensor_id: ObjectId, session: Optional[Session] = None) -> int:
        """恢复传感器"""
        self.client.invoke("pause.htm", {"id": sensor_id, "action": RESUME_ACTION}, session=session)
        logger.info(f"传感器 {sensor_id} 已恢复")
        return int(sensor_id)

    @validate_input({'sensor_id': is_object_id, 'target_id': is_object_id}, "无效的对象ID")
    def clone(self, sensor_id: ObjectId, name: str, target_id: ObjectId, session: Optional[Session] = None) -> int:
        """
        克隆传感器到目标设备
        :return: 新传感器ID，从响应内容或重定向后的URL中解析
        """
        response = self.client.invoke_raw("duplicateobject.htm",
                                          {"id": sensor_id, "name": name, "targetid": target_id},
                                          session=session)
        try:
            new_id = extract_object_id(response.text, response.url)
        except ResponseParseError:
            logger.error(f"克隆传感器 {sensor_id} 失败, 响应中没有新对象ID")
            raise

        logger.info(f"传感器 {sensor_id} 已克隆到 {target_id}, 新ID: {new_id}")
        return new_id
