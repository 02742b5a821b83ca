"""Building blocks for finding prebuilt release binaries and keeping install manifests."""

__version__ = "0.1.0"