"""Reading license and framework version out of a Cargo.toml."""

import tomllib
from typing import Any, Dict, Optional

from pydantic import ValidationError

from ..exceptions import ManifestError
from ..schemas import Metadata

NON_STANDARD_LICENSE = "non-standard"

# cargo spells it `license-file`, older tooling also accepted the underscore
LICENSE_FILE_KEYS = ("license-file", "license_file")


def parse_manifest(content: str) -> Dict[str, Any]:
    try:
        return tomllib.loads(content)
    except tomllib.TOMLDecodeError as exc:
        raise ManifestError(f"Invalid Cargo.toml: {exc}") from exc


def get_license(manifest: Dict[str, Any]) -> Optional[str]:
    """Mimics crates.io: a license file without `license` is reported as non-standard.

    A license inherited from the workspace (`license.workspace = true`) cannot
    be read from this manifest alone and counts as absent.
    """
    package = manifest.get("package")
    if not isinstance(package, dict):
        return None
    license = package.get("license")
    if isinstance(license, str):
        return license
    if any(package.get(key) is not None for key in LICENSE_FILE_KEYS):
        return NON_STANDARD_LICENSE
    return None


def get_dependency_version(dep: Any) -> Optional[str]:
    """Version of a single dependency entry.

    Git dependencies without a version collapse to "main" when they track the
    main branch and to "git" for anything else.
    """
    if isinstance(dep, str):
        return dep
    if not isinstance(dep, dict):
        return None
    if isinstance(dep.get("version"), str):
        return dep["version"]
    if dep.get("git") is not None:
        return "main" if dep.get("branch") == "main" else "git"
    return None


def get_framework_version(manifest: Dict[str, Any], prefix: str = "bevy") -> Optional[str]:
    # the first matching key wins, so bevy_* sub crates count too
    dependencies = manifest.get("dependencies")
    if not isinstance(dependencies, dict):
        return None
    for name, dep in dependencies.items():
        if name.startswith(prefix):
            return get_dependency_version(dep)
    return None


def metadata_from_manifest(content: str, prefix: str = "bevy") -> Metadata:
    manifest = parse_manifest(content)
    try:
        return Metadata(
            license=get_license(manifest),
            compatibility_version=get_framework_version(manifest, prefix),
        )
    except ValidationError as exc:
        raise ManifestError(f"Unexpected Cargo.toml contents: {exc}") from exc
