import functools
import inspect
import logging
import re
import time
from typing import Any, Callable, TypeVar, ParamSpec, Optional, Union

# 类型参数定义
P = ParamSpec('P')
R = TypeVar('R')

# 日志中需要隐藏的参数名
SECRET_KEYS = ('password', 'passhash')
MASK = '***'

# 查询字符串中的 password=... / passhash=...
SECRET_QUERY_PATTERN = re.compile(r'((?:password|passhash)=)[^&\s\'")]+', re.IGNORECASE)


def setup_logger(name: Optional[str] = None) -> logging.Logger:
    """获取带控制台输出的日志器，已有处理器时不重复添加"""
    named = logging.getLogger(name or __name__)
    if named.handlers:
        return named

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
    named.addHandler(handler)
    named.setLevel(logging.INFO)
    return named


logger = setup_logger()


def mask_secrets(values: dict[str, Any]) -> dict[str, Any]:
    """隐藏密码类字段"""
    return {k: (MASK if k in SECRET_KEYS and v is not None else v) for k, v in values.items()}


def redact_secrets(text: str) -> str:
    """隐藏文本（如 requests 异常信息中的URL）里的密码类查询参数"""
    return SECRET_QUERY_PATTERN.sub(rf'\g<1>{MASK}', text)


def log_execution(include_args: bool = False) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """
    记录函数耗时的装饰器，成功记 info，失败记 error 后重新抛出
    :param include_args: 是否记录调用参数，密码类关键字参数会被隐藏
    """

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        name = func.__qualname__

        @functools.wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            detail = f", 参数: args={args}, kwargs={mask_secrets(kwargs)}" if include_args else ""
            started = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                logger.error(f"{name} 执行失败, 耗时 {time.perf_counter() - started:.2f} 秒{detail}, "
                             f"错误: {redact_secrets(str(e))}")
                raise
            logger.info(f"{name} 执行成功, 耗时 {time.perf_counter() - started:.2f} 秒{detail}")
            return result

        return wrapper

    return decorator


def validate_input(
        validator: Union[Callable[..., bool], dict[str, Callable[[Any], bool]]],
        error_message: str = "参数校验失败"
):
    """
    参数校验装饰器
    :param validator: 整体校验函数，或 参数名 -> 校验函数 的字典
    :param error_message: 校验失败时 ValueError 的消息，按参数名校验时追加参数名
    """

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        sig = inspect.signature(func) if isinstance(validator, dict) else None

        def check(args, kwargs) -> None:
            if sig is None:
                if not validator(*args, **kwargs):
                    raise ValueError(error_message)
                return

            bound = sig.bind(*args, **kwargs)
            bound.apply_defaults()
            failed = [param for param, rule in validator.items()
                      if param in bound.arguments and not rule(bound.arguments[param])]
            if failed:
                raise ValueError(f"{error_message}: {failed[0]}")

        @functools.wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            check(args, kwargs)
            return func(*args, **kwargs)

        return wrapper

    return decorator


def is_object_id(value: Any) -> bool:
    """对象ID必须是正整数或纯数字字符串"""
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return value > 0
    return isinstance(value, str) and value.isdigit() and int(value) > 0
