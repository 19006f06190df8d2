import os
from logging.handlers import RotatingFileHandler

from livescribe.logging_utils import setup_logging


def test_setup_logging_adds_file_handler_once(tmp_path):
    logger, log_path = setup_logging(str(tmp_path / "logs"))
    try:
        setup_logging(str(tmp_path / "logs"))
        file_handlers = [
            h for h in logger.handlers if isinstance(h, RotatingFileHandler)
        ]
        assert len(file_handlers) == 1
        assert log_path.endswith("livescribe.log")

        logger.info("hello")
        file_handlers[0].flush()
        assert os.path.exists(log_path)
    finally:
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
