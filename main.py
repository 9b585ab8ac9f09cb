import json
import sys
from typing import List, Tuple
from loguru import logger
from cloudsync.config.loader import load_config
from cloudsync.connectors.base import DatabaseHandle
from cloudsync.exceptions import DatabaseConnectionError
from cloudsync.services.sync import SyncService

COMMANDS = ("test", "compare", "execute")


def configure_logging(log_file: str = "sync.log") -> None:
    # 移除默认的处理器
    logger.remove()

    # 添加文件处理器
    logger.add(
        log_file,
        rotation="500 MB",
        level="INFO",
        format="<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
    )

    # 添加控制台处理器（标准输出留给结果）
    logger.add(
        sys.stderr,
        level="DEBUG",
        format="<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <level>{message}</level>"
    )


def parse_args(argv: List[str]) -> Tuple[str, str]:
    """解析命令行参数: <test|compare|execute> config=<path>"""
    command = None
    config_path = None
    for arg in argv:
        if arg.startswith("config="):
            # 去除可能存在的引号
            config_path = arg.split("=", 1)[1].strip("'\"")
        elif arg in COMMANDS:
            command = arg

    if not command:
        raise ValueError(f"Missing command, expected one of: {', '.join(COMMANDS)}")
    if not config_path:
        raise ValueError("Missing required argument: config=<path_to_config_file>")

    logger.debug(f"Parsed command: {command}, config path: {config_path}")
    return command, config_path


def run(command: str, config_path: str) -> int:
    logger.info(f"Loading configuration from: {config_path}")
    job = load_config(config_path)

    local = DatabaseHandle.from_url(job.local_url)
    service = SyncService(local, options=job.options, default_tables=job.tables or None)
    try:
        if command == "test":
            check = service.test_connection(job.remote)
            print(json.dumps(check.to_dict(), ensure_ascii=False))
            return 0 if check.success else 1

        if command == "compare":
            results = service.compare_data(job.remote)
            ok = True
        else:
            results = service.sync_tables(job.remote, job.tables)
            ok = all(result.success for result in results)

        for result in results:
            print(json.dumps(result.to_dict(), ensure_ascii=False))
        return 0 if ok else 1
    finally:
        local.close()


def main(argv: List[str] = None) -> int:
    configure_logging()
    try:
        command, config_path = parse_args(sys.argv[1:] if argv is None else argv)
        return run(command, config_path)
    except DatabaseConnectionError as e:
        logger.error(f"Connection failed: {str(e)}")
        return 2
    except ValueError as e:
        logger.error(f"Invalid configuration: {str(e)}")
        return 2


if __name__ == "__main__":
    sys.exit(main())
