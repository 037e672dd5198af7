"""Data-driven test inputs."""

from .dataset_loader import load_search_cases, resolve_data_path

__all__ = ["load_search_cases", "resolve_data_path"]
