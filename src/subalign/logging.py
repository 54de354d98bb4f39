"""
Logging system for SubAlign with startup size check and Rich console output.
"""
import os
import logging
import shutil
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from rich.console import Console
from rich.logging import RichHandler


MAX_LOG_BYTES = 5 * 1024 * 1024;


class SubAlignLogger:
    """
    Logger wrapper for SubAlign with log rotation and Rich display.

    Features:
    - 5MB size check on startup, moves the old log aside if exceeded
    - Rich console output with colors and tracebacks
    - File logging with rotation (always at DEBUG)
    - INFO default, DEBUG with --debug flag
    """

    def __init__( self, name: str = "subalign", debug: bool = False, log_dir: Path = None ):
        self.name = name;
        self.debug_enabled = debug;
        self.console = Console( stderr=True );

        if log_dir is None:
            log_dir = Path( os.getenv( "SUBALIGN_LOG_DIR", "logs" ) );
        self.logs_dir = Path( log_dir );
        self.logs_dir.mkdir( parents=True, exist_ok=True );

        self.log_file = self.logs_dir / f"{name}.log";

        self._check_and_rotate_on_startup();
        self.logger = self._setup_logger();

    def _check_and_rotate_on_startup( self ):
        """Move the log file aside on startup if it is already over 5MB."""
        if self.log_file.exists():
            file_size = self.log_file.stat().st_size;
            if file_size > MAX_LOG_BYTES:
                timestamp = datetime.now().isoformat().replace( ":", "-" );
                backup_name = self.logs_dir / f"{self.name}.{timestamp}.log";
                shutil.move( str( self.log_file ), str( backup_name ) );

    def _setup_logger( self ):
        """Setup logger with Rich console and rotating file handlers."""
        logger = logging.getLogger( self.name );
        logger.setLevel( logging.DEBUG );
        logger.propagate = False;

        # Clear existing handlers
        logger.handlers.clear();

        console_handler = RichHandler(
            console=self.console,
            rich_tracebacks=True,
            show_time=True,
            show_path=self.debug_enabled
        );
        console_handler.setLevel( logging.DEBUG if self.debug_enabled else logging.INFO );
        console_handler.setFormatter( logging.Formatter( "%(message)s" ) );
        logger.addHandler( console_handler );
        self.console_handler = console_handler;

        file_handler = RotatingFileHandler(
            self.log_file,
            maxBytes=MAX_LOG_BYTES,
            backupCount=5,
            encoding="utf-8"
        );
        file_handler.setLevel( logging.DEBUG );
        file_formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        );
        file_handler.setFormatter( file_formatter );
        logger.addHandler( file_handler );

        return logger;

    def set_debug( self, debug: bool ):
        """Switch console verbosity after the logger has been created."""
        self.debug_enabled = debug;
        self.console_handler.setLevel( logging.DEBUG if debug else logging.INFO );

    def debug( self, message, **kwargs ):
        self.logger.debug( message, **kwargs );

    def info( self, message, **kwargs ):
        self.logger.info( message, **kwargs );

    def warning( self, message, **kwargs ):
        self.logger.warning( message, **kwargs );

    def error( self, message, **kwargs ):
        self.logger.error( message, **kwargs );

    def critical( self, message, **kwargs ):
        self.logger.critical( message, **kwargs );


# Global logger instance
_logger = None;


def get_logger( debug: bool = False ) -> SubAlignLogger:
    """Get the global SubAlign logger instance."""
    global _logger;
    if _logger is None:
        _logger = SubAlignLogger( debug=debug );
    elif debug and not _logger.debug_enabled:
        _logger.set_debug( True );
    return _logger;


def setup_logging( debug: bool = False ) -> SubAlignLogger:
    """Setup logging for the application."""
    logger = get_logger( debug=debug );
    logger.set_debug( debug );
    return logger;
