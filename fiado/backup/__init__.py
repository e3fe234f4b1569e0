"""Whole-store backup export and import."""

from fiado.backup.merger import BackupFormatError, BackupMerger

__all__ = ["BackupFormatError", "BackupMerger"]
