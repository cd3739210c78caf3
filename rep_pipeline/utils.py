import logging


def setup_logging(log_file: str = None, level=logging.INFO) -> logging.Logger:
    """
    Set up logging configuration.

    Module loggers (ClassificationEngine, ThresholdRepCounter, ...) propagate to
    the root logger, so handlers are attached there.

    Args:
        log_file: Path to log file (if None, logs to console only)
        level: Logging level

    Returns:
        Configured root logger
    """
    logger = logging.getLogger()
    logger.setLevel(level)

    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
