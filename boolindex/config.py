"""Run configuration for the build and search command-line tools."""

import argparse
from dataclasses import dataclass
from pathlib import Path

DEFAULT_OUTPUT_DIR = Path("output")

# Files smaller than this are ignored when scanning the texts directory.
DEFAULT_MIN_FILE_SIZE_KB = 150

# Fewer files than this only produces a warning.
DEFAULT_MIN_FILE_COUNT = 10


class ConfigurationError(Exception):
    pass


@dataclass
class AppConfig:
    texts_dir: Path | None = None
    output_dir: Path = DEFAULT_OUTPUT_DIR
    min_file_size_kb: int = DEFAULT_MIN_FILE_SIZE_KB
    min_file_count: int = DEFAULT_MIN_FILE_COUNT
    single_threaded: bool = False
    workers: int | None = None  # None: one per CPU
    recursive: bool = False

    def validate(self) -> None:
        if self.texts_dir is None or not str(self.texts_dir).strip():
            raise ConfigurationError("Texts directory path is not configured.")
        if not Path(self.texts_dir).is_dir():
            raise ConfigurationError(f"Texts directory not found: {self.texts_dir}")
        if self.output_dir is None or not str(self.output_dir).strip():
            raise ConfigurationError("Output directory path is not configured.")
        if self.min_file_size_kb < 0:
            raise ConfigurationError("Minimum file size cannot be negative.")
        if self.min_file_count < 0:
            raise ConfigurationError("Minimum file count cannot be negative.")
        if self.workers is not None and self.workers < 1:
            raise ConfigurationError("Worker count must be at least 1.")

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "AppConfig":
        return cls(
            texts_dir=args.texts,
            output_dir=args.output,
            min_file_size_kb=args.min_size_kb,
            min_file_count=args.min_files,
            single_threaded=args.single_threaded,
            workers=args.workers,
            recursive=args.recursive,
        )
