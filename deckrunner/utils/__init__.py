from .logging_manager import ElapsedTimeFormatter, LoggerManager

__all__ = ['ElapsedTimeFormatter', 'LoggerManager']
