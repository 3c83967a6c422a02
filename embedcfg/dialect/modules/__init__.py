from . import (
    code_signing,
    file_resource,
    macos_application_bundle_builder,
    snapcraft,
    wix_bundle_builder,
    wix_installer,
    wix_msi_builder,
)

__all__ = [
    "code_signing",
    "file_resource",
    "macos_application_bundle_builder",
    "snapcraft",
    "wix_bundle_builder",
    "wix_installer",
    "wix_msi_builder",
]
