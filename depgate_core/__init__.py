"""Content-addressed dependency checking for staged build upgrades."""

from .checker import DependencyChecker
from .config import CheckerConfig, load_checker_config
from .deployer import Deployer, FetchCallback, FetchHandle
from .errors import ConfigError, DepgateError, FetchError, ManifestError
from .filesystem import LocalFiles, find_in_classpath, list_candidates
from .integrity import file_sha256, verify_file
from .manifest import ManifestEntry, iter_entry_names, load_manifest, parse_manifest_entry
from .models import Dependency, ResolvedDependencySet
from .properties import parse_properties
from .reconcile import purge_stale, reconcile
from .resolution import LocalResolution, resolve_locally
from .sessions import FetchMode, FetchSession
from .versions import compare_versions, read_artifact_version

__all__ = [
    "DependencyChecker",
    "CheckerConfig",
    "load_checker_config",
    "Deployer",
    "FetchCallback",
    "FetchHandle",
    "DepgateError",
    "ConfigError",
    "FetchError",
    "ManifestError",
    "LocalFiles",
    "find_in_classpath",
    "list_candidates",
    "file_sha256",
    "verify_file",
    "ManifestEntry",
    "iter_entry_names",
    "load_manifest",
    "parse_manifest_entry",
    "Dependency",
    "ResolvedDependencySet",
    "parse_properties",
    "purge_stale",
    "reconcile",
    "LocalResolution",
    "resolve_locally",
    "FetchMode",
    "FetchSession",
    "compare_versions",
    "read_artifact_version",
]
