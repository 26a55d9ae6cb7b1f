import argparse
import json
import logging
import sys
import os
from datetime import datetime
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, List, Optional

from loguru import logger as loguru_logger

from api.api_client import PRTGClient
from api.session import Credentials, Session, has_secret
from common.config import ConfigManager
from common.exceptions import PRTGError
from core.object_service import ObjectService
from core.sensor_service import SensorService

logger = logging.getLogger(__name__)


class LoguruPropagateHandler(logging.Handler):
    """把 loguru 记录转交给标准库同名日志器，与其他日志写入同一组处理器"""

    def emit(self, record: logging.LogRecord) -> None:
        logging.getLogger(record.name).handle(record)


def bridge_loguru() -> int:
    return loguru_logger.add(LoguruPropagateHandler(), format="{message}", level="INFO")


def setup_logging() -> None:
    # 确保日志目录存在
    logs_dir = os.path.join(os.getcwd(), 'logs')
    os.makedirs(logs_dir, exist_ok=True)

    date_str = datetime.now().strftime('%Y-%m-%d')
    log_file = os.path.join(logs_dir, f'app_{date_str}.log')

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.INFO)

    # 清理已存在处理器，避免重复添加
    if root_logger.handlers:
        for h in list(root_logger.handlers):
            root_logger.removeHandler(h)

    # 统一格式
    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    # 控制台输出到stderr，stdout只保留命令结果
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(formatter)

    # 文件大小轮转处理器
    file_handler = RotatingFileHandler(
        log_file, maxBytes=50 * 1024 * 1024, backupCount=10, encoding='utf-8'
    )
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(formatter)

    root_logger.addHandler(console_handler)
    root_logger.addHandler(file_handler)

    # api 模块使用 loguru，移除其默认输出后转入标准库
    loguru_logger.remove()
    bridge_loguru()


def parse_filters(values: Optional[List[str]]) -> Dict[str, str]:
    """把 key=value 形式的参数转换为字典"""
    filters = {}
    for item in values or []:
        key, sep, value = item.partition('=')
        if not sep or not key:
            raise ValueError(f"过滤条件格式应为 key=value: {item}")
        filters[key] = value
    return filters


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="监控服务器HTTP管理接口命令行工具")
    parser.add_argument('--url', help="服务器地址，默认读取 PRTG_URL")
    parser.add_argument('--username', help="用户名，默认读取 PRTG_USERNAME")
    secret = parser.add_mutually_exclusive_group()
    secret.add_argument('--password', help="密码，默认读取 PRTG_PASSWORD")
    secret.add_argument('--passhash', help="passhash，默认读取 PRTG_PASSHASH")

    sub = parser.add_subparsers(dest='command', required=True)

    for content in ('devices', 'groups', 'sensors'):
        p = sub.add_parser(content, help=f"列出{content}")
        p.add_argument('--name')
        p.add_argument('--id', dest='object_id')
        p.add_argument('--filter', action='append', dest='filters', metavar='KEY=VALUE')

    p = sub.add_parser('details', help="传感器详情")
    p.add_argument('sensor_id')

    p = sub.add_parser('get-property', help="读取对象属性")
    p.add_argument('object_id')
    p.add_argument('name')

    p = sub.add_parser('set-property', help="设置对象属性")
    p.add_argument('object_id')
    p.add_argument('name')
    p.add_argument('value')

    p = sub.add_parser('pause', help="暂停传感器")
    p.add_argument('sensor_id')
    p.add_argument('--message')
    p.add_argument('--duration', type=int, help="暂停分钟数")

    p = sub.add_parser('resume', help="恢复传感器")
    p.add_argument('sensor_id')

    p = sub.add_parser('clone', help="克隆传感器")
    p.add_argument('sensor_id')
    p.add_argument('name')
    p.add_argument('target_id')

    sub.add_parser('status', help="服务器状态")
    sub.add_parser('passhash', help="用密码换取passhash")
    return parser


def build_session(args: argparse.Namespace, config: ConfigManager) -> Optional[Session]:
    """命令行参数优先，未提供的部分回退到配置"""
    url = args.url or config.get('prtg.url')
    if not url:
        return None

    username = args.username or config.get('prtg.username')
    if has_secret(args.password) or has_secret(args.passhash):
        password, passhash = args.password, args.passhash
    else:
        passhash = config.get('prtg.passhash')
        password = None if has_secret(passhash) else config.get('prtg.password')

    credentials = None
    if username and (has_secret(password) or has_secret(passhash)):
        credentials = Credentials(username=username, password=password, passhash=passhash)
    return Session(base_url=url, credentials=credentials)


def run_command(args: argparse.Namespace, client: PRTGClient, session: Optional[Session]) -> Any:
    objects = ObjectService(client)
    sensors = SensorService(client)

    if args.command in ('devices', 'groups', 'sensors'):
        return objects.list_objects(args.command, name=args.name, object_id=args.object_id,
                                    filters=parse_filters(args.filters), session=session)
    if args.command == 'details':
        return sensors.get_sensor_details(args.sensor_id, session=session)
    if args.command == 'get-property':
        return sensors.get_property(args.object_id, args.name, session=session)
    if args.command == 'set-property':
        return sensors.set_property(args.object_id, args.name, args.value, session=session)
    if args.command == 'pause':
        return sensors.pause(args.sensor_id, message=args.message, duration=args.duration, session=session)
    if args.command == 'resume':
        return sensors.resume(args.sensor_id, session=session)
    if args.command == 'clone':
        return sensors.clone(args.sensor_id, args.name, args.target_id, session=session)
    if args.command == 'status':
        return client.get_status(session=session)
    if args.command == 'passhash':
        return client.get_passhash(session=session)
    raise ValueError(f"未知命令: {args.command}")


def main(argv: Optional[List[str]] = None) -> int:
    setup_logging()

    args = build_parser().parse_args(argv)
    config = ConfigManager()

    try:
        session = build_session(args, config)
        with PRTGClient.from_config(config) as client:
            result = run_command(args, client, session)
    except (PRTGError, ValueError) as e:
        logger.error(f"命令执行失败: {e}")
        return 1

    print(json.dumps(result, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
