"""ロギング設定。

stdioトランスポートではstdoutをMCPプロトコルが使用するため、ログは全てstderrに出力する。
"""

import logging
import sys

DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_PACKAGE_LOGGER = "codeinsights"
_initialized = False


def setup_logging(level: int | str = logging.INFO, format_string: str = DEFAULT_FORMAT) -> None:
    """codeinsightsパッケージのロガーを設定する。二回目以降の呼び出しは何もしない。

    Args:
        level: ログレベル（数値または "DEBUG" などのレベル名）。
        format_string: ログメッセージのフォーマット。
    """
    global _initialized

    if _initialized:
        return

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(format_string, datefmt=DEFAULT_DATE_FORMAT))
    handler.setLevel(level)

    package_logger = logging.getLogger(_PACKAGE_LOGGER)
    package_logger.setLevel(level)
    package_logger.addHandler(handler)

    _initialized = True
