"""Errors raised while resolving extra metadata for an asset."""


class MetadataError(RuntimeError):
    """Base class for every metadata resolution failure."""


class HostMismatchError(MetadataError):
    """The link does not point at the host served by this backend."""


class InvalidLinkError(MetadataError):
    pass


class UnknownHostError(MetadataError):
    pass


class NotFoundError(MetadataError):
    """The registry or remote search returned nothing for the name."""


class TransportError(MetadataError):
    pass


class ContentEncodingError(MetadataError):
    pass


class ManifestError(MetadataError):
    """Cargo.toml could not be fetched or parsed."""


class UnsupportedOperationError(MetadataError):
    """The backend does not offer this capability."""


class AssetParseError(ValueError):
    """An asset or category descriptor could not be read."""
