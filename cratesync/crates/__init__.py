"""
Crate records shared by list sources, storage and mirrors.
"""

from cratesync.crates.models import (
    CrateRecord,
    GitHubRepo,
    RegistryCrate,
    crate_from_dict,
    split_list_name,
)

__all__ = [
    "CrateRecord",
    "GitHubRepo",
    "RegistryCrate",
    "crate_from_dict",
    "split_list_name",
]
