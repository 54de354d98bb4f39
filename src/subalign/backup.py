"""
Timestamped backups of the offsets registry with size-based retention.
"""
import shutil
from datetime import datetime
from pathlib import Path
from typing import List, Tuple

from .logging import get_logger


class BackupManager:
    """
    Keeps ISO-8601 timestamped copies of a file before it is rewritten.

    Rules:
    - Files <150KB: keep up to 50 copies
    - Files >=150KB: keep up to 25 copies
    """

    def __init__( self, backup_dir: Path = None, size_threshold: int = 150 * 1024, max_small_files: int = 50, max_large_files: int = 25 ):
        self.logger = get_logger();
        self.backup_dir = Path( backup_dir ) if backup_dir else Path( "backup" );
        self.size_threshold = size_threshold;
        self.max_small_files = max_small_files;
        self.max_large_files = max_large_files;

    def get_backup_filename( self, original_file: Path ) -> str:
        """Backup name: <stem>.<YYYY-MM-DDTHH-MM-SS-ffffff><suffix>."""
        timestamp = datetime.now().isoformat( timespec="microseconds" ).replace( ":", "-" ).replace( ".", "-" );
        return f"{original_file.stem}.{timestamp}{original_file.suffix}";

    def get_existing_backups( self, original_file: Path ) -> List[Tuple[Path, datetime, int]]:
        """
        List existing backups of ``original_file``.

        Returns:
            (backup_path, timestamp, size_bytes) tuples, oldest first
        """
        if not self.backup_dir.exists():
            return [];

        pattern = f"{original_file.stem}.????-??-??T??-??-??-??????{original_file.suffix}";
        backup_info = [];
        for backup_path in self.backup_dir.glob( pattern ):
            try:
                stamp = backup_path.name[len( original_file.stem ) + 1:-len( original_file.suffix ) or None];
                timestamp = datetime.strptime( stamp, "%Y-%m-%dT%H-%M-%S-%f" );
                size_bytes = backup_path.stat().st_size;
                backup_info.append( ( backup_path, timestamp, size_bytes ) );
            except ( ValueError, OSError ) as e:
                self.logger.debug( f"Skipping malformed backup file {backup_path}: {e}" );

        backup_info.sort( key=lambda x: x[1] );
        return backup_info;

    def apply_retention_policy( self, original_file: Path ) -> int:
        """
        Remove the oldest backups beyond the limit for the file's size class.

        Returns:
            Number of backups removed
        """
        backups = self.get_existing_backups( original_file );
        if not backups:
            return 0;

        if original_file.exists():
            current_size = original_file.stat().st_size;
        else:
            sizes = [ size for _, _, size in backups ];
            current_size = sum( sizes ) / len( sizes );

        max_backups = self.max_small_files if current_size < self.size_threshold else self.max_large_files;
        if len( backups ) <= max_backups:
            return 0;

        removed = 0;
        for backup_path, _, _ in backups[:-max_backups]:
            try:
                backup_path.unlink();
                removed += 1;
                self.logger.debug( f"Removed old backup: {backup_path.name}" );
            except OSError as e:
                self.logger.warning( f"Could not remove backup {backup_path}: {e}" );

        if removed:
            self.logger.info( f"Removed {removed} old backup(s) to enforce retention policy" );
        return removed;

    def create_backup( self, file_path: Path ) -> Path:
        """
        Copy ``file_path`` into the backup directory and apply retention.

        Returns:
            Path to the created backup
        """
        file_path = Path( file_path );
        if not file_path.exists():
            raise FileNotFoundError( f"File to backup not found: {file_path}" );

        self.backup_dir.mkdir( parents=True, exist_ok=True );
        backup_path = self.backup_dir / self.get_backup_filename( file_path );
        shutil.copy2( file_path, backup_path );
        self.logger.info( f"Created backup: {backup_path.name}" );

        self.apply_retention_policy( file_path );
        return backup_path;
