import json
import os
from typing import Any, Dict, Mapping
from cloudsync.models.config import ConnectionDescriptor, JobConfig, SyncOptions
from loguru import logger

DEFAULT_SYNC_PORT = 5432


def load_env_defaults(environ: Mapping[str, str] = None) -> Dict[str, Any]:
    """
    从环境变量读取同步表单的默认值

    Args:
        environ: 环境变量映射，默认 os.environ

    Returns:
        与请求参数字段一致的字典（db_type, host, port, user, password, db_name, ssl_mode）
    """
    env = os.environ if environ is None else environ
    try:
        port = int(env.get("SYNC_DB_PORT") or 0)
    except ValueError:
        port = 0

    return {
        "db_type": env.get("SYNC_DB_TYPE", ""),
        "host": env.get("SYNC_DB_HOST", ""),
        "port": port or DEFAULT_SYNC_PORT,
        "user": env.get("SYNC_DB_USER", ""),
        "password": env.get("SYNC_DB_PASSWORD", ""),
        "db_name": env.get("SYNC_DB_NAME", ""),
        "ssl_mode": env.get("SYNC_SSL_MODE", ""),
    }


def load_config(config_path: str) -> JobConfig:
    """
    从JSON文件加载同步任务配置

    Args:
        config_path: 配置文件路径

    Returns:
        JobConfig对象

    Raises:
        ValueError: 配置文件不存在、JSON格式错误或配置内容无效
    """
    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            data = json.load(f)

        remote = ConnectionDescriptor.from_dict(data['remote'])
        logger.debug(f"远端数据库配置: {json.dumps(remote.to_dict(), ensure_ascii=False)}")

        tables = data['tables']
        if not isinstance(tables, list) or not all(isinstance(t, str) for t in tables):
            raise ValueError("'tables' must be a list of table names")

        # 添加可选配置，使用配置文件中的值（如果存在）
        option_kwargs = {}
        for field in ('batch_size', 'connect_timeout', 'upsert', 'max_workers'):
            if field in data:
                option_kwargs[field] = data[field]
                logger.debug(f"使用配置文件中的 {field}: {data[field]}")
            else:
                logger.debug(f"使用默认值 {field}")

        return JobConfig(
            local_url=data['local_url'],
            remote=remote,
            tables=tables,
            options=SyncOptions(**option_kwargs),
        )

    except FileNotFoundError:
        raise ValueError(f"配置文件不存在: {config_path}")
    except json.JSONDecodeError as e:
        raise ValueError(f"配置文件JSON格式错误: {str(e)}")
    except KeyError as e:
        raise ValueError(f"配置文件缺少必要字段: {str(e)}")
    except ValueError:
        raise
    except Exception as e:
        raise ValueError(f"配置文件加载失败: {str(e)}")
